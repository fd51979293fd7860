import importlib
import types

import pytest


def test_import_without_optional_dependencies(monkeypatch):
    module = importlib.import_module("mapsearch")

    from importlib import metadata as im

    def fake_version(name):
        if name == "pandas":
            raise im.PackageNotFoundError
        return "9999"

    monkeypatch.setattr(im, "version", fake_version)

    with pytest.warns(RuntimeWarning, match="pandas"):
        reloaded = importlib.reload(module)

    assert isinstance(reloaded, types.ModuleType)
    assert hasattr(reloaded, "MapSession")


def test_import_requires_core_dependencies(monkeypatch):
    module = importlib.import_module("mapsearch")

    from importlib import metadata as im

    def fake_version(name):
        if name in {"shapely", "aiohttp"}:
            raise im.PackageNotFoundError
        return "9999"

    monkeypatch.setattr(im, "version", fake_version)

    with pytest.raises(ImportError) as excinfo:
        importlib.reload(module)

    assert "shapely" in str(excinfo.value)
    assert "aiohttp" in str(excinfo.value)
