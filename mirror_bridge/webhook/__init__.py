"""
Webhook — Authenticate GitHub webhooks and extract push events.
"""
