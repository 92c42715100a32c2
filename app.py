#!/usr/bin/env python3
import aws_cdk as cdk

from ticket_tools_infra.stack import TicketToolsStack


app = cdk.App()
TicketToolsStack(app, "TicketToolsStack")
app.synth()
