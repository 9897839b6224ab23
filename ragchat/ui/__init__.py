"""NiceGUI interface - thin presentation layer over ChatSession.

Renders messages, forwards send/stop/retry/edit/new-chat actions to the
session, and shows its notifications. Contains no stream handling.
"""
