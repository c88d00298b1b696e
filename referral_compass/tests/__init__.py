'''
Referral Compass Backend Test Suite

Test Modules:
-------------
- test_months.py: YYYY-MM parsing and calendar-month arithmetic
- test_office_scoring.py: Scoring engine
  - L12 / R3 / MSLR aggregation and window boundaries
  - No-history, dormant and active partitioning
  - Score ranking and tie-breaks
  - Quartile tiering and percentile rounding
  - At-Risk / Emerging labels
  - Input rejection (malformed months, negative counts, duplicates)
- test_tier_summary.py: Tier counts, grouping and filtering
- test_health_score.py: Health score points, banding and trend
- test_ingestion.py: Monthly referral CSV parsing and validation
- test_referral_source.py: Read-only database fetch with a mocked connection
- test_api.py: FastAPI endpoints through TestClient

Running Tests:
--------------
    pytest referral_compass/tests/
    pytest referral_compass/tests/ -m "not slow"
'''
