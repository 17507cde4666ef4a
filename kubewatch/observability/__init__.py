"""Logging and metrics for kubewatch."""
