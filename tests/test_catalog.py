import pytest

from pipegen import catalog
from pipegen.errors import InternalConsistencyError


@pytest.mark.parametrize(
    "language,toolchain",
    [
        ("node", "node"),
        ("TypeScript", "node"),
        ("react", "node"),
        ("static", "node"),
        ("vscode-extension", "node"),
        ("Django", "python"),
        ("spring-boot", "java"),
        ("laravel", "php"),
        ("container", "docker"),
    ],
)
def test_resolve_aliases(language, toolchain):
    assert catalog.resolve(language).id == toolchain


def test_unknown_language_is_unsupported():
    assert not catalog.is_supported("cobol")
    assert not catalog.is_supported(None)
    assert not catalog.is_supported(3)


def test_resolve_miss_is_internal_error():
    with pytest.raises(InternalConsistencyError) as exc:
        catalog.resolve("cobol")
    assert exc.value.kind == "CatalogMiss"


def test_version_defaults():
    node = catalog.TOOLCHAINS["node"]
    assert node.version_for("") == "20.x"
    assert node.version_for("18") == "18"
    assert catalog.TOOLCHAINS["docker"].version_for("24") is None


def test_catalog_is_read_only():
    with pytest.raises(TypeError):
        catalog.TOOLCHAINS["ruby"] = catalog.TOOLCHAINS["node"]
    with pytest.raises(TypeError):
        catalog.ALIASES["ruby"] = "node"


def test_every_alias_points_at_an_entry():
    grouped = catalog.languages_by_toolchain()
    assert list(grouped) == list(catalog.TOOLCHAINS)
    assert sum(len(v) for v in grouped.values()) == len(catalog.ALIASES)
    assert "typescript" in grouped["node"]
