"""Domain-Driven Design bounded contexts for flow-recorder.

- Recording Context: capture session lifecycle and step collection
- Flow Context: Flow synthesis, selectors and document validation
"""
