import aws_cdk as cdk
from aws_cdk import Environment

from cloudfront_spa.configs.config_manager import ConfigManager
from cloudfront_spa.configs.plugin_cfg import load_spa_cfg
from cloudfront_spa.stacks.site_stack import SpaSiteStack

app = cdk.App()

# -c deployment=path/to/deploy.json -c stage=prod
service = ConfigManager(app.node.try_get_context("deployment") or ConfigManager.DEFAULT_FILE).load_service(
    stage=app.node.try_get_context("stage"),
    region=app.node.try_get_context("region"),
)

SpaSiteStack(
    app,
    service.stack_name,
    cfg=load_spa_cfg(service.custom),
    service_name=service.service,
    stage=service.provider.stage,
    env=Environment(region=service.provider.region),
)

app.synth()
