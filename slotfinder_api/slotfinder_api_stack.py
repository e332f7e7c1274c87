import os

from aws_cdk import (
    CfnOutput,
    Duration,
    Stack,
    aws_apigateway as apigateway,
    aws_lambda as _lambda,
)
from constructs import Construct

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


class SlotFinderApiStack(Stack):
    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        stage_name = self.node.try_get_context("stageName") or "dev"
        log_level = self.node.try_get_context("logLevel") or "INFO"
        lookahead_days = str(self.node.try_get_context("lookaheadDays") or 14)

        slots_fn = _lambda.Function(
            self,
            "SlotsFunction",
            runtime=_lambda.Runtime.PYTHON_3_11,
            handler="handlers.slots.slots_api.handler",
            code=_lambda.Code.from_asset(
                PROJECT_ROOT,
                exclude=[
                    "cdk.out",
                    "tests",
                    "slotfinder_api",
                    "app.py",
                    "*.md",
                    "*.txt",
                    "*.toml",
                    "*.egg-info",
                    ".*",
                    "**/__pycache__",
                ],
            ),
            timeout=Duration.seconds(10),
            memory_size=256,
            environment={
                "LOG_LEVEL": log_level,
                "STAGE": stage_name,
                "LOOKAHEAD_DAYS": lookahead_days,
            },
        )

        api = apigateway.RestApi(
            self,
            "SlotFinderApi",
            deploy_options=apigateway.StageOptions(stage_name=stage_name),
        )
        slots = api.root.add_resource("slots")
        slots.add_method(
            "POST",
            apigateway.LambdaIntegration(slots_fn, proxy=True),
        )

        CfnOutput(
            self,
            "SlotsUrl",
            value=f"{api.url}slots",
        )
        CfnOutput(
            self,
            "SlotsFunctionName",
            value=slots_fn.function_name,
        )
