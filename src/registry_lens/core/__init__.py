"""Transport layer: settings, HTTP session, throttling and the registry client."""
