"""Telemetry attributes, baggage and event naming."""