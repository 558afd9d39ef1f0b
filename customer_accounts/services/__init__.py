"""Integrations with the stores, payment providers and queues we depend on."""
