"""
BranchSync - per-branch working tables rebuilt from service record uploads.

Each upload is partitioned by branch key; every branch's working table is
archived, re-cloned from the template and refilled, with user annotations
carried over by record identifier.
"""

__version__ = "0.1.0"
