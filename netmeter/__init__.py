"""netmeter: network metering advisor and CLI."""

__version__ = "0.1.0"
