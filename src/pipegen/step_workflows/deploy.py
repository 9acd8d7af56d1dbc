# step_workflows/deploy.py
from __future__ import annotations

from typing import Callable, Dict, List, Mapping

from ..dsl import sh, uses, with_env
from ..model import Step

# Deploy templates reference repository secrets; the generated workflow never
# carries secret values itself.

IMAGE = "${{ secrets.DOCKERHUB_USERNAME }}/${{ github.event.repository.name }}:latest"
CONTAINER = "${{ github.event.repository.name }}"


def _secrets(*names: str) -> Dict[str, str]:
    return {n: f"${{{{ secrets.{n} }}}}" for n in names}


def staging_steps() -> List[Step]:
    return [
        sh(
            "Deploy to staging",
            'echo "Deploying $PROJECT_NAME to staging at $STAGING_URL"',
            env=_secrets("STAGING_URL", "STAGING_TOKEN"),
        ),
    ]


def production_steps() -> List[Step]:
    return [
        sh(
            "Deploy to production",
            'echo "Deploying $PROJECT_NAME to production at $PRODUCTION_URL"',
            env=_secrets("PRODUCTION_URL", "PRODUCTION_TOKEN"),
        ),
    ]


def docker_steps() -> List[Step]:
    return [
        uses("Set up Docker Buildx", "docker/setup-buildx-action@v3"),
        uses(
            "Login to DockerHub",
            "docker/login-action@v3",
            with_args={
                "username": "${{ secrets.DOCKERHUB_USERNAME }}",
                "password": "${{ secrets.DOCKERHUB_TOKEN }}",
            },
        ),
        uses(
            "Build and push Docker image",
            "docker/build-push-action@v5",
            with_args={"context": ".", "push": True, "tags": IMAGE},
        ),
        sh(
            "Deploy Docker container",
            "\n".join(
                [
                    f"docker pull {IMAGE}",
                    f"docker stop {CONTAINER} || true",
                    f"docker rm {CONTAINER} || true",
                    f"docker run -d --name {CONTAINER} -p 80:8080 {IMAGE}",
                ]
            ),
            env=_secrets("DOCKER_HOST", "DOCKER_CERT_PATH"),
        ),
    ]


def aws_lambda_steps() -> List[Step]:
    return [
        uses(
            "Configure AWS credentials",
            "aws-actions/configure-aws-credentials@v4",
            with_args={
                "aws-access-key-id": "${{ secrets.AWS_ACCESS_KEY_ID }}",
                "aws-secret-access-key": "${{ secrets.AWS_SECRET_ACCESS_KEY }}",
                "aws-region": "${{ secrets.AWS_REGION }}",
            },
        ),
        sh("Package function", "zip -r function.zip ."),
        sh(
            "Deploy to AWS Lambda",
            "aws lambda update-function-code --function-name $LAMBDA_FUNCTION_NAME --zip-file fileb://function.zip",
            env=_secrets("LAMBDA_FUNCTION_NAME"),
        ),
    ]


# deploy strategy value -> template
TEMPLATES: Mapping[str, Callable[[], List[Step]]] = {
    "STAGING": staging_steps,
    "PRODUCTION": production_steps,
    "DOCKER": docker_steps,
    "AWS_LAMBDA": aws_lambda_steps,
}


def deploy_steps(strategy: str, environment: Mapping[str, str]) -> List[Step]:
    """Template steps for `strategy`, each carrying the caller's environment."""
    return with_env(TEMPLATES[strategy](), environment)
