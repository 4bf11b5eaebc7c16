"""Core functionality for Tradfri control.

This package contains:
- session: GatewaySession (authentication, device registry, operation sequencing)
- light: TradfriLight device façade
- timeout: Pacing delay between sequence steps
- protocol: Collaborator contracts (protocol client, credential store, discovery)
- auth: Discovery wrapper, identity serialisation, credential store
- config: Configuration file and collaborator loading
- exceptions: Error taxonomy
"""
