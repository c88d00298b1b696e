"""
Referral Source Data Access Tests

Tests for referral_compass/services/referral_source.py and the SQL it issues,
run against a mocked asyncpg connection.
"""

import pytest

from referral_compass.models import MonthlyReferral, OfficeRef
from referral_compass.services.referral_source import (
    fetch_monthly_referrals,
    fetch_office_catalog,
    fetch_scoring_snapshot,
)
from referral_compass.sql import (
    OFFICE_SOURCE_TYPE,
    get_monthly_referrals_query,
    get_office_catalog_query,
)


pytestmark = pytest.mark.asyncio


class TestQueries:
    """Tests for the SQL builders."""

    async def test_catalog_query_unscoped(self):
        query = get_office_catalog_query()
        assert 'source_type = $1' in query
        assert 'is_active = true' in query
        assert '$2' not in query

    async def test_catalog_query_owner_scoped(self):
        assert 'created_by = $2' in get_office_catalog_query(owner_scoped=True)

    async def test_referrals_query_uses_array_parameter(self):
        query = get_monthly_referrals_query()
        assert 'ANY($1::text[])' in query
        assert 'FROM monthly_patients' in query


class TestFetchOfficeCatalog:
    """Tests for fetch_office_catalog."""

    async def test_maps_rows(self, mock_connection):
        mock_connection.fetch.return_value = [
            {'office_id': 'a', 'name': 'Alpha Dental'},
            {'office_id': 'b', 'name': 'Beta Clinic'},
        ]

        offices = await fetch_office_catalog(mock_connection)

        assert offices == [
            OfficeRef(officeId='a', name='Alpha Dental'),
            OfficeRef(officeId='b', name='Beta Clinic'),
        ]
        args = mock_connection.fetch.call_args.args
        assert args[1:] == (OFFICE_SOURCE_TYPE,)

    async def test_owner_filter_passed(self, mock_connection):
        await fetch_office_catalog(mock_connection, owner_id='user-1')

        args = mock_connection.fetch.call_args.args
        assert 'created_by = $2' in args[0]
        assert args[1:] == (OFFICE_SOURCE_TYPE, 'user-1')


class TestFetchMonthlyReferrals:
    """Tests for fetch_monthly_referrals."""

    async def test_no_offices_skips_query(self, mock_connection):
        assert await fetch_monthly_referrals(mock_connection, []) == []
        mock_connection.fetch.assert_not_called()

    async def test_rows_passed_through_unvalidated(self, mock_connection):
        # Negative counts are the engine's to reject, not the fetch layer's
        mock_connection.fetch.return_value = [
            {'office_id': 'a', 'year_month': '2024-05', 'patient_count': 4},
            {'office_id': 'a', 'year_month': '2024-06', 'patient_count': -1},
        ]

        rows = await fetch_monthly_referrals(mock_connection, ['a'])

        assert rows == [
            MonthlyReferral(officeId='a', yearMonth='2024-05', patientCount=4),
            MonthlyReferral(officeId='a', yearMonth='2024-06', patientCount=-1),
        ]
        assert mock_connection.fetch.call_args.args[1] == ['a']


class TestFetchScoringSnapshot:
    """Tests for fetch_scoring_snapshot."""

    async def test_catalog_then_history(self, mock_connection):
        mock_connection.fetch.side_effect = [
            [{'office_id': 'a', 'name': 'Alpha'}, {'office_id': 'b', 'name': 'Beta'}],
            [{'office_id': 'b', 'year_month': '2024-06', 'patient_count': 2}],
        ]

        offices, referrals = await fetch_scoring_snapshot(mock_connection)

        assert [o.officeId for o in offices] == ['a', 'b']
        assert referrals == [MonthlyReferral(officeId='b', yearMonth='2024-06', patientCount=2)]
        assert mock_connection.fetch.call_count == 2
        assert mock_connection.fetch.call_args_list[1].args[1] == ['a', 'b']

    async def test_empty_catalog(self, mock_connection):
        offices, referrals = await fetch_scoring_snapshot(mock_connection)

        assert offices == []
        assert referrals == []
        assert mock_connection.fetch.call_count == 1
