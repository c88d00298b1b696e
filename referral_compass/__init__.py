"""
Referral Compass Backend Package.

FastAPI service layer that scores referring offices on their monthly patient
referrals and sorts them into VIP / Warm / Cold / Dormant tiers.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, and dependencies
    - models: Pydantic schemas and enums
    - services: Scoring engine and supporting business logic
    - sql: Parameterized read queries
"""

__version__ = "1.0.0"
