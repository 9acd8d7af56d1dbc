import pytest

from pipegen.descriptor import Architecture, DeployStrategy, parse_descriptor
from pipegen.errors import (
    ArchitectureArityMismatch,
    ConfigurationError,
    DependencyCycle,
    DuplicateComponent,
    DuplicateEnvironmentKey,
    InvalidArchitecture,
    InvalidDeployStrategy,
    MalformedDescriptor,
    MissingProjectName,
    NoComponents,
    UnresolvedDependency,
    UnsupportedLanguage,
)


def payload(**overrides):
    base = {
        "projectName": "demo",
        "architecture": "MONOLITH",
        "deployStrategy": "NONE",
        "components": [{"name": "app", "language": "python", "testCommand": "pytest"}],
    }
    base.update(overrides)
    return base


def test_parses_scenario_in_declaration_order(scenario_a):
    d = parse_descriptor(scenario_a)
    assert d.project_name == "shop"
    assert d.architecture is Architecture.MONOLITH
    assert d.deploy_strategy is DeployStrategy.STAGING
    assert [c.name for c in d.components] == ["web", "core"]
    assert d.component("core").build_command == "mvn package"
    assert d.deploys


def test_enum_members_are_accepted():
    d = parse_descriptor(payload(architecture=Architecture.FULLSTACK, deployStrategy=DeployStrategy.DOCKER))
    assert d.architecture is Architecture.FULLSTACK
    assert d.deploy_strategy is DeployStrategy.DOCKER


def test_parse_is_idempotent_on_descriptors(scenario_a):
    d = parse_descriptor(scenario_a)
    assert parse_descriptor(d) is d


def test_rejects_non_mapping_payload():
    with pytest.raises(MalformedDescriptor):
        parse_descriptor(["not", "a", "mapping"])


@pytest.mark.parametrize("name", [None, "", "   "])
def test_project_name_required(name):
    with pytest.raises(MissingProjectName):
        parse_descriptor(payload(projectName=name))


def test_architecture_tags_are_strict():
    with pytest.raises(InvalidArchitecture) as exc:
        parse_descriptor(payload(architecture="monolith"))
    assert exc.value.field == "architecture"
    assert exc.value.details["tag"] == "monolith"


def test_missing_architecture_has_no_default():
    raw = payload()
    del raw["architecture"]
    with pytest.raises(InvalidArchitecture):
        parse_descriptor(raw)


def test_project_architecture_alias():
    raw = payload()
    del raw["architecture"]
    raw["projectArchitecture"] = "FULLSTACK"
    assert parse_descriptor(raw).architecture is Architecture.FULLSTACK


def test_deploy_strategy_none_is_a_value_not_a_default():
    raw = payload()
    del raw["deployStrategy"]
    with pytest.raises(InvalidDeployStrategy):
        parse_descriptor(raw)


def test_architecture_checked_before_deploy_strategy():
    with pytest.raises(InvalidArchitecture):
        parse_descriptor(payload(architecture="SERVERLESS", deployStrategy="FTP"))


@pytest.mark.parametrize("components", [None, []])
def test_components_required(components):
    with pytest.raises(NoComponents):
        parse_descriptor(payload(components=components))


@pytest.mark.parametrize("components", ["app", {"name": "app"}, ["app"]])
def test_components_must_be_a_list_of_mappings(components):
    with pytest.raises(MalformedDescriptor):
        parse_descriptor(payload(components=components))


def test_extension_requires_exactly_one_component():
    comps = [{"name": "a", "language": "node"}, {"name": "b", "language": "node"}]
    with pytest.raises(ArchitectureArityMismatch) as exc:
        parse_descriptor(payload(architecture="EXTENSION", components=comps))
    assert exc.value.details == {"architecture": "EXTENSION", "count": 2}


def test_microservices_requires_two_components():
    with pytest.raises(ArchitectureArityMismatch):
        parse_descriptor(payload(architecture="MICROSERVICES"))


def test_arity_checked_before_languages():
    comps = [{"name": "legacy", "language": "cobol"}]
    with pytest.raises(ArchitectureArityMismatch):
        parse_descriptor(payload(architecture="MICROSERVICES", components=comps))


def test_unsupported_language_names_component():
    comps = [{"name": "app", "language": "python"}, {"name": "legacy", "language": "cobol"}]
    with pytest.raises(UnsupportedLanguage) as exc:
        parse_descriptor(payload(components=comps))
    assert exc.value.details == {"component": "legacy", "language": "cobol"}
    assert exc.value.field == "components[legacy].language"


def test_language_matched_case_insensitively():
    d = parse_descriptor(payload(components=[{"name": "app", "language": " TypeScript "}]))
    assert d.components[0].language == "typescript"


def test_component_id_falls_back_to_directory_then_language():
    comps = [{"language": "node", "directory": "web"}, {"language": "python"}]
    d = parse_descriptor(payload(architecture="FULLSTACK", components=comps))
    assert [c.id for c in d.components] == ["web", "python"]


def test_duplicate_component_ids():
    comps = [{"name": "api", "language": "node"}, {"name": "api", "language": "python"}]
    with pytest.raises(DuplicateComponent):
        parse_descriptor(payload(architecture="FULLSTACK", components=comps))


def test_unresolved_dependency():
    comps = [{"name": "web", "language": "node", "dependencies": ["api"]}]
    with pytest.raises(UnresolvedDependency) as exc:
        parse_descriptor(payload(architecture="FULLSTACK", components=comps))
    assert exc.value.details == {"component": "web", "dependency": "api"}


def test_dependency_cycle():
    comps = [
        {"name": "a", "language": "node", "dependencies": ["b"]},
        {"name": "b", "language": "node", "dependencies": ["a"]},
        {"name": "c", "language": "node"},
    ]
    with pytest.raises(DependencyCycle) as exc:
        parse_descriptor(payload(architecture="FULLSTACK", components=comps))
    assert sorted(exc.value.details["components"]) == ["a", "b"]


def test_self_dependency_is_a_cycle():
    comps = [{"name": "a", "language": "node", "dependencies": ["a"]}]
    with pytest.raises(DependencyCycle):
        parse_descriptor(payload(architecture="FULLSTACK", components=comps))


def test_environment_mapping_keeps_order():
    d = parse_descriptor(payload(environmentVariables={"B": "2", "A": 1}))
    assert d.environment == (("B", "2"), ("A", "1"))


def test_environment_list_form():
    env = [{"name": "API_URL", "value": "https://api"}, ["REGION", "eu"]]
    d = parse_descriptor(payload(environmentVariables=env))
    assert d.environment_variables == {"API_URL": "https://api", "REGION": "eu"}


def test_duplicate_environment_key():
    env = [{"name": "API_URL", "value": "a"}, {"name": "API_URL", "value": "b"}]
    with pytest.raises(DuplicateEnvironmentKey) as exc:
        parse_descriptor(payload(environmentVariables=env))
    assert exc.value.details["key"] == "API_URL"


def test_environment_checked_last():
    env = [["K", "1"], ["K", "2"]]
    with pytest.raises(UnsupportedLanguage):
        parse_descriptor(payload(components=[{"name": "x", "language": "cobol"}], environmentVariables=env))


def test_commands_are_stripped_and_default_to_empty():
    comps = [{"name": "app", "language": "python", "buildCommand": "  make  ", "isMainComponent": True}]
    c = parse_descriptor(payload(components=comps)).components[0]
    assert c.build_command == "make"
    assert c.test_command == ""
    assert c.is_main


def test_error_str_is_multiline():
    with pytest.raises(ConfigurationError) as exc:
        parse_descriptor(payload(deployStrategy="FTP"))
    text = str(exc.value)
    assert text.splitlines()[0] == "InvalidDeployStrategy: Unknown deploy strategy 'FTP'"
    assert "field=deployStrategy" in text
    assert exc.value.to_dict()["kind"] == "InvalidDeployStrategy"


def test_to_dict_round_trips_contract_keys(scenario_c):
    doc = parse_descriptor(scenario_c).to_dict()
    assert doc["architecture"] == "FULLSTACK"
    assert doc["components"][0]["isMain"] is True
    assert doc["components"][1]["name"] == "./backend"


@pytest.mark.parametrize("version", [3.1, 18])
def test_numeric_version_is_rejected(version):
    comps = [{"name": "app", "language": "python", "version": version}]
    with pytest.raises(MalformedDescriptor) as exc:
        parse_descriptor(payload(components=comps))
    assert exc.value.field == "components[app].version"


def test_string_version_is_kept():
    d = parse_descriptor(payload(components=[{"name": "app", "language": "python", "version": "3.10"}]))
    assert d.components[0].version == "3.10"
