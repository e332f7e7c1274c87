import aws_cdk as cdk
from aws_cdk.assertions import Match, Template

from slotfinder_api.slotfinder_api_stack import SlotFinderApiStack


def test_stack_resources():
    app = cdk.App()
    stack = SlotFinderApiStack(
        app,
        "SlotFinderApiStack",
        env=cdk.Environment(region="us-east-1"),
    )
    template = Template.from_stack(stack)

    template.resource_count_is("AWS::Lambda::Function", 1)
    template.resource_count_is("AWS::ApiGateway::RestApi", 1)

    template.has_resource_properties(
        "AWS::Lambda::Function",
        {
            "Runtime": "python3.11",
            "Handler": "handlers.slots.slots_api.handler",
            "Environment": {
                "Variables": {
                    "LOG_LEVEL": "INFO",
                    "STAGE": "dev",
                    "LOOKAHEAD_DAYS": "14",
                }
            },
        },
    )

    template.has_resource_properties(
        "AWS::ApiGateway::Stage",
        {
            "StageName": "dev",
        },
    )

    template.has_resource_properties(
        "AWS::ApiGateway::Method",
        {
            "AuthorizationType": "NONE",
            "HttpMethod": "POST",
        },
    )

    template.has_output(
        "SlotsUrl",
        {
            "Value": Match.any_value(),
        },
    )
    template.has_output(
        "SlotsFunctionName",
        {
            "Value": Match.any_value(),
        },
    )


def test_stack_reads_context():
    app = cdk.App(context={"stageName": "prod", "lookaheadDays": 21})
    stack = SlotFinderApiStack(app, "SlotFinderApiStack")
    template = Template.from_stack(stack)

    template.has_resource_properties(
        "AWS::ApiGateway::Stage",
        {
            "StageName": "prod",
        },
    )
    template.has_resource_properties(
        "AWS::Lambda::Function",
        {
            "Environment": {
                "Variables": Match.object_like({"STAGE": "prod", "LOOKAHEAD_DAYS": "21"}),
            },
        },
    )
