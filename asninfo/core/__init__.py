"""Core dataset model, snapshot store, background refresher, and lookup service."""
