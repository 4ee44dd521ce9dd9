"""
Pianka - helper for managing Cloud Composer environments.

A command-line tool that opens shells, runs commands and reaches the
Airflow metadata database of a Composer environment by driving gcloud,
kubectl and the MySQL client tools.
"""

__version__ = "0.1.0"
__author__ = "Pianka Contributors"
