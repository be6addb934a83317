"""Core settings, constants, exceptions and logging for provider-orchestrator."""
