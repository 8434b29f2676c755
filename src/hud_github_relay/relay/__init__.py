"""Relay services, independent of the HTTP layer.

- Settings loaded from the environment / .env
- Structured logging
- GitHub App credentials and installation-scoped issue creation
- Webhook signature verification
- Customer installation registry
"""
