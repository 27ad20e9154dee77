"""Test runner integrations."""
