"""OpenTelemetry collector support: zpages, component registry and health checks."""