#!/usr/bin/env python3
import os

import aws_cdk as cdk

from slotfinder_api.slotfinder_api_stack import SlotFinderApiStack

app = cdk.App()
stage_name = app.node.try_get_context("stageName") or "dev"

SlotFinderApiStack(
    app,
    f"SlotFinderApi-{stage_name}",
    env=cdk.Environment(
        account=os.environ.get("CDK_DEFAULT_ACCOUNT"),
        region=os.environ.get("CDK_DEFAULT_REGION", "us-east-1"),
    ),
)

app.synth()
