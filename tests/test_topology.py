import pytest

from pipegen import topology
from pipegen.dag import job_levels
from pipegen.descriptor import parse_descriptor
from pipegen.model import Phase


def build(raw):
    return topology.build(parse_descriptor(raw))


def phases(job):
    return [(i.phase, i.component.name if i.component else None) for i in job.intents]


def test_monolith_test_build_deploy(scenario_a):
    graph = build(scenario_a)
    assert graph.names == ["test", "build", "deploy"]
    assert graph.get("test").needs == []
    assert graph.get("build").needs == ["test"]
    assert graph.get("deploy").needs == ["build"]
    assert graph.get("deploy").condition == topology.MAIN_BRANCH_ONLY


def test_monolith_visits_components_in_order(scenario_a):
    test_job = build(scenario_a).get("test")
    assert phases(test_job) == [
        (Phase.SETUP, "web"),
        (Phase.INSTALL, "web"),
        (Phase.TEST, "web"),
        (Phase.SETUP, "core"),
        (Phase.INSTALL, "core"),
        (Phase.TEST, "core"),
    ]


def test_monolith_without_deploy(scenario_a):
    scenario_a["deployStrategy"] = "NONE"
    assert build(scenario_a).names == ["test", "build"]


def test_microservices_single_matrix_job(scenario_b):
    graph = build(scenario_b)
    assert graph.names == ["services", "deploy"]
    services = graph.get("services")
    assert services.matrix.key == "service"
    assert services.matrix.values == ("user-service", "auth-service")
    assert [e["directory"] for e in services.matrix.include] == ["services/user", "services/auth"]
    assert [e["toolchain"] for e in services.matrix.include] == ["node", "python"]
    assert services.matrix.include[0]["version"] == "20.x"
    assert services.matrix.include[1]["version"] == "3.12"
    assert services.needs == []
    assert graph.get("deploy").needs == ["services"]


def test_fullstack_independent_jobs(scenario_c):
    graph = build(scenario_c)
    assert graph.names == ["frontend-build", "backend-build", "deploy"]
    assert graph.get("frontend-build").needs == []
    assert graph.get("backend-build").needs == []
    assert graph.get("deploy").needs == ["frontend-build", "backend-build"]


def test_fullstack_dependency_edges():
    raw = {
        "projectName": "stack",
        "architecture": "FULLSTACK",
        "deployStrategy": "DOCKER",
        "components": [
            {"name": "web", "language": "vue", "dependencies": ["api"]},
            {"name": "api", "language": "python", "dependencies": ["db"]},
            {"name": "db", "language": "docker"},
        ],
    }
    graph = build(raw)
    assert graph.get("web-build").needs == ["api-build"]
    assert graph.get("api-build").needs == ["db-build"]
    assert job_levels(graph) == [["db-build"], ["api-build"], ["web-build"], ["deploy"]]


def test_fullstack_slug_collisions_are_disambiguated():
    raw = {
        "projectName": "stack",
        "architecture": "FULLSTACK",
        "deployStrategy": "NONE",
        "components": [
            {"name": "Web App", "language": "node"},
            {"name": "web_app", "language": "node"},
            {"name": "web app", "language": "node"},
        ],
    }
    assert build(raw).names == ["web-app-build", "web_app-build", "web-app-build-2"]


def test_extension_single_job_ends_with_package(scenario_d):
    graph = build(scenario_d)
    assert graph.names == ["build-extension"]
    assert [p for p, _ in phases(graph.get("build-extension"))][-3:] == [Phase.TEST, Phase.BUILD, Phase.PACKAGE]


@pytest.mark.parametrize("strategy", ["STAGING", "PRODUCTION", "DOCKER", "AWS_LAMBDA"])
def test_extension_never_deploys(scenario_d, strategy):
    scenario_d["deployStrategy"] = strategy
    assert "deploy" not in build(scenario_d)


@pytest.mark.parametrize("fixture", ["scenario_a", "scenario_b", "scenario_c"])
@pytest.mark.parametrize("strategy", ["NONE", "STAGING", "PRODUCTION", "DOCKER", "AWS_LAMBDA"])
def test_deploy_job_present_iff_strategy(request, fixture, strategy):
    raw = request.getfixturevalue(fixture)
    raw["deployStrategy"] = strategy
    graph = build(raw)
    assert ("deploy" in graph) == (strategy != "NONE")
    # acyclic and every needs resolves
    job_levels(graph)


def test_docker_component_has_no_install_intent():
    raw = {
        "projectName": "img",
        "architecture": "MONOLITH",
        "deployStrategy": "NONE",
        "components": [{"name": "image", "language": "container", "buildCommand": "docker build ."}],
    }
    build_job = build(raw).get("build")
    assert [p for p, _ in phases(build_job)] == [Phase.SETUP, Phase.BUILD]


def test_job_slug():
    assert topology.job_slug("./frontend") == "frontend"
    assert topology.job_slug("API Gateway") == "api-gateway"
    assert topology.job_slug("1st") == "c-1st"
    assert topology.job_slug("///") == "component"
