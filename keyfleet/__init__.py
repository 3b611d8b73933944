"""
keyfleet: fleet controller for distributed vanity-key prefix searches

Modules:
    config    - Environment-driven settings
    schemas   - Campaign and worker protocol models
    provider  - Cloud provider interface and DigitalOcean adapter
    worker    - Control client for the search service on each node
    core      - Controller, fan-out, confirmation gates, progress model
    ui        - Terminal presenter
"""

__version__ = "0.1.0"
