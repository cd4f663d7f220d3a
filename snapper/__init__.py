"""
Ranking snapper: Rakuten/Amazon ranking page snapshots with a top-item check.

Entry points:
- `snapper.handler.handler` for serverless invocation
- `snapper.main` for local command-line runs
"""
