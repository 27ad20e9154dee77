"""Adapters binding the core to storage backends, logging and browsers."""
