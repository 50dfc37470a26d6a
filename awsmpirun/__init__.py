"""
awsmpirun - MPI-style program launcher for EC2 fleets

Runs one executable across the running instances of a VPC, gives every
instance a rank and the addresses of its peers, and reports the output of
rank 0.

Architecture:
- Each module is self-contained with clear interfaces
- Cloud collaborators are injected through protocols
- main.py is the only place modules are wired together

Modules:
- fleet: Node discovery, ranking and shared data models
- environment: Per-node rank and peer address context
- execution: Concurrent dispatch and completion polling
- results: Aggregation of per-node outcomes
- artifacts: Staging of the program binary
- aws: EC2, SSM and S3 adapters
"""

__version__ = "1.0.0"
