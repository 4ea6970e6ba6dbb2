"""Read pipeline topology and health of Elastic Agent and OpenTelemetry collectors."""

__version__ = "0.1.0"