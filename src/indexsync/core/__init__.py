"""Core — Engine wiring the store, index, dispatcher and service."""
