"""kubewatch: watch Kubernetes resources and forward add/delete records to stdout and Splunk HEC."""

__version__ = "0.5.0"
