"""ThingsBoard relay service."""
