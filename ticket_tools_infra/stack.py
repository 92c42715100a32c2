from __future__ import annotations

from pathlib import Path

import aws_cdk as cdk
from aws_cdk import Duration
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as _lambda
from aws_cdk import aws_s3 as s3
from constructs import Construct


class TicketToolsStack(cdk.Stack):
    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        ctx = self.node.try_get_context
        gorgias_base_url = ctx("gorgias_base_url") or "https://example.gorgias.com"
        reason_codes_key = ctx("reason_codes_key") or "reasonCodes.xlsx"
        transactions_cluster_arn = ctx("transactions_cluster_arn")
        transactions_secret_arn = ctx("transactions_secret_arn")

        reason_codes_bucket = s3.Bucket(
            self,
            "ReasonCodesBucket",
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            enforce_ssl=True,
        )

        lambda_dir = Path(__file__).resolve().parent.parent / "lambda"

        # Third-party packages from lambda/requirements.txt, installed under python/ for the layer
        dependencies_layer = _lambda.LayerVersion(
            self,
            "DependenciesLayer",
            code=_lambda.Code.from_asset(
                str(lambda_dir),
                bundling=cdk.BundlingOptions(
                    image=_lambda.Runtime.PYTHON_3_11.bundling_image,
                    command=[
                        "bash",
                        "-c",
                        "pip install --no-cache-dir -r requirements.txt -t /asset-output/python",
                    ],
                ),
            ),
            compatible_runtimes=[_lambda.Runtime.PYTHON_3_11],
        )

        string_concat_lambda = _lambda.Function(
            self,
            "StringConcatLambda",
            runtime=_lambda.Runtime.PYTHON_3_11,
            handler="string_concat_handler.handler",
            code=_lambda.Code.from_asset(str(lambda_dir)),
            timeout=Duration.seconds(30),
            layers=[dependencies_layer],
            environment={
                "GORGIAS_BASE_URL": gorgias_base_url,
                "GORGIAS_USERNAME": ctx("gorgias_username") or "PLACEHOLDER",
                "GORGIAS_KEY": ctx("gorgias_key") or "PLACEHOLDER",
                "SPECIAL_CASE_EMAIL": ctx("special_case_email") or "",
                "REASON_CODES_BUCKET": reason_codes_bucket.bucket_name,
                "REASON_CODES_KEY": reason_codes_key,
            },
        )

        webhook_environment = {
            "EMAIL_SENDER": ctx("email_sender") or "PLACEHOLDER",
            "SENDER_PASSWORD": ctx("sender_password") or "PLACEHOLDER",
            "EMAIL_RECIPIENT": ctx("email_recipient") or "PLACEHOLDER",
        }
        if transactions_cluster_arn:
            webhook_environment.update(
                {
                    "TRANSACTIONS_CLUSTER_ARN": transactions_cluster_arn,
                    "TRANSACTIONS_SECRET_ARN": transactions_secret_arn or "",
                    "TRANSACTIONS_DATABASE": ctx("transactions_database") or "teller",
                }
            )

        webhook_lambda = _lambda.Function(
            self,
            "WebhookLambda",
            runtime=_lambda.Runtime.PYTHON_3_11,
            handler="webhook_handler.handler",
            code=_lambda.Code.from_asset(str(lambda_dir)),
            timeout=Duration.seconds(30),
            layers=[dependencies_layer],
            environment=webhook_environment,
        )

        # Public HTTP endpoints (anonymous, GET and POST)
        string_concat_url = string_concat_lambda.add_function_url(
            auth_type=_lambda.FunctionUrlAuthType.NONE,
            cors=_lambda.FunctionUrlCorsOptions(
                allowed_origins=["*"],
                allowed_methods=[_lambda.HttpMethod.GET, _lambda.HttpMethod.POST],
            ),
        )
        webhook_url = webhook_lambda.add_function_url(auth_type=_lambda.FunctionUrlAuthType.NONE)

        reason_codes_bucket.grant_read(string_concat_lambda)

        if transactions_cluster_arn:
            webhook_lambda.add_to_role_policy(
                iam.PolicyStatement(
                    actions=["rds-data:ExecuteStatement"],
                    resources=[transactions_cluster_arn],
                )
            )
            if transactions_secret_arn:
                webhook_lambda.add_to_role_policy(
                    iam.PolicyStatement(
                        actions=["secretsmanager:GetSecretValue"],
                        resources=[transactions_secret_arn],
                    )
                )

        # Outputs
        cdk.CfnOutput(self, "StringConcatUrl", value=string_concat_url.url)
        cdk.CfnOutput(self, "WebhookUrl", value=webhook_url.url)
        cdk.CfnOutput(self, "ReasonCodesBucketName", value=reason_codes_bucket.bucket_name)
