"""Core domain: models, ports, retry and the run stores."""
