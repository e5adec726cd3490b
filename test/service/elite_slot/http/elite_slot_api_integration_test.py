"""
HTTP tests for the elite slot API

Runs the real app lifespan (schema, seed, slot freed consumer) on a
per-test SQLite file.
"""

from decimal import Decimal

from fastapi.testclient import TestClient
import pytest

from src.platform.idempotency.idempotency_guard import REPLAY_HEADER
from test.service.elite_slot.http.conftest import API, hold_body


class TestPlatformEndpoints:
    @pytest.mark.integration
    def test_health(self, client: TestClient) -> None:
        response = client.get('/health')

        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'

    @pytest.mark.integration
    def test_metrics_are_exposed(self, client: TestClient) -> None:
        response = client.get('/metrics')

        assert response.status_code == 200
        assert 'elite_slot' in response.text


class TestCatalogEndpoints:
    @pytest.mark.integration
    def test_seeded_slots_are_listed(self, client: TestClient) -> None:
        response = client.get(f'{API}/slots')

        assert response.status_code == 200
        slots = response.json()
        assert len(slots) == 9
        assert slots[0]['label'] == 'R1C1'
        assert slots[0]['tier'] == 'top'

    @pytest.mark.integration
    def test_availability_of_fresh_period_is_all_free(self, client: TestClient, period_id: str) -> None:
        response = client.get(f'{API}/availability')

        assert response.status_code == 200
        body = response.json()
        assert body['period']['id'] == period_id
        assert {item['status'] for item in body['slots']} == {'free'}


class TestReservationEndpoints:
    @pytest.mark.integration
    def test_hold_confirm_and_read_back(self, client: TestClient, period_id: str) -> None:
        """
        Given: the active period
        When: owner-a holds slot 1 and the payment callback confirms it
        Then: the reservation reads back confirmed and another hold is a 409
        """
        # Act
        hold = client.post(f'{API}/reservations/hold', json=hold_body(period_id))
        reservation_id = hold.json()['reservation']['id']
        confirm = client.post(
            f'{API}/reservations/{reservation_id}/confirm', json={'payment_ref': 'pay-1'}
        )
        lost = client.post(
            f'{API}/reservations/hold', json=hold_body(period_id, owner_id='owner-b')
        )

        # Assert
        assert hold.status_code == 201
        assert hold.json()['code'] == 'ok'
        assert hold.json()['reservation']['status'] == 'held'
        assert Decimal(hold.json()['reservation']['total_amount']) == Decimal('172.50')
        assert confirm.status_code == 200
        assert confirm.json()['reservation']['status'] == 'confirmed'
        assert lost.status_code == 409
        assert lost.json() == {'code': 'slot_unavailable', 'reservation': None}

        fetched = client.get(f'{API}/reservations/{reservation_id}')
        assert fetched.json()['status'] == 'confirmed'
        owned = client.get(f'{API}/reservations', params={'owner_id': 'owner-a'})
        assert [item['id'] for item in owned.json()] == [reservation_id]

    @pytest.mark.integration
    def test_idempotency_key_replays_first_response(self, client: TestClient, period_id: str) -> None:
        headers = {'Idempotency-Key': 'hold-attempt-1'}

        first = client.post(f'{API}/reservations/hold', json=hold_body(period_id), headers=headers)
        replay = client.post(f'{API}/reservations/hold', json=hold_body(period_id), headers=headers)
        misuse = client.post(
            f'{API}/reservations/hold', json=hold_body(period_id, slot_id=2), headers=headers
        )

        assert first.status_code == 201
        assert REPLAY_HEADER not in first.headers
        assert replay.status_code == 201
        assert replay.headers[REPLAY_HEADER] == 'true'
        assert replay.json() == first.json()
        assert misuse.status_code == 409
        assert misuse.json()['code'] == 'conflict'

    @pytest.mark.integration
    def test_cancel_twice_reports_already_cancelled(self, client: TestClient, period_id: str) -> None:
        hold = client.post(f'{API}/reservations/hold', json=hold_body(period_id))
        reservation_id = hold.json()['reservation']['id']
        body = {'reason': 'changed my mind', 'actor': 'owner-a'}

        first = client.post(f'{API}/reservations/{reservation_id}/cancel', json=body)
        second = client.post(f'{API}/reservations/{reservation_id}/cancel', json=body)

        assert first.json()['code'] == 'ok'
        assert second.status_code == 200
        assert second.json()['code'] == 'already_cancelled'

    @pytest.mark.integration
    def test_unknown_reservation_is_404(self, client: TestClient) -> None:
        response = client.get(f'{API}/reservations/01936d8f-5e73-7c4e-a9c5-123456789abc')

        assert response.status_code == 404
        assert response.json()['code'] == 'not_found'

    @pytest.mark.integration
    def test_invalid_body_is_400(self, client: TestClient, period_id: str) -> None:
        response = client.post(
            f'{API}/reservations/hold', json={'slot_id': 1, 'period_id': period_id}
        )

        assert response.status_code == 400
        assert response.json()['code'] == 'validation_error'


class TestExpiredHold:
    @pytest.mark.integration
    def test_confirm_after_expiry_is_410(self, expiring_client: TestClient) -> None:
        period_id = expiring_client.get(f'{API}/periods/active').json()['id']
        hold = expiring_client.post(f'{API}/reservations/hold', json=hold_body(period_id))
        reservation_id = hold.json()['reservation']['id']

        response = expiring_client.post(
            f'{API}/reservations/{reservation_id}/confirm', json={'payment_ref': 'pay-late'}
        )

        assert response.status_code == 410
        assert response.json()['code'] == 'expired'


class TestWaitlistAndExtensionEndpoints:
    @pytest.mark.integration
    def test_join_waitlist(self, client: TestClient, period_id: str) -> None:
        response = client.post(
            f'{API}/waitlist/join',
            json={
                'period_id': period_id,
                'owner_id': 'waiter-1',
                'listing_id': 'listing-w',
                'tier_preference': 'top',
            },
        )

        assert response.status_code == 201
        assert response.json()['entry']['status'] == 'waiting'

    @pytest.mark.integration
    def test_extension_quote(self, client: TestClient) -> None:
        response = client.get(f'{API}/extensions/quote', params={'additional_days': 3})

        assert response.status_code == 200
        assert Decimal(response.json()['total_amount']) == Decimal('103.50')

    @pytest.mark.integration
    def test_extension_request_pay_and_approve(self, client: TestClient, period_id: str) -> None:
        # Arrange
        hold = client.post(f'{API}/reservations/hold', json=hold_body(period_id))
        reservation_id = hold.json()['reservation']['id']
        client.post(f'{API}/reservations/{reservation_id}/confirm', json={'payment_ref': 'pay-1'})

        # Act
        created = client.post(
            f'{API}/extensions/request',
            json={'reservation_id': reservation_id, 'additional_days': 2},
        )
        extension_id = created.json()['extension']['id']
        paid = client.post(
            f'{API}/extensions/{extension_id}/payment-captured', json={'payment_ref': 'ext-pay'}
        )
        decided = client.post(
            f'{API}/extensions/{extension_id}/decide',
            json={'approve': True, 'admin_ref': 'admin-1'},
        )
        again = client.post(
            f'{API}/extensions/{extension_id}/decide',
            json={'approve': False, 'admin_ref': 'admin-2'},
        )

        # Assert
        assert created.status_code == 201
        assert paid.json()['extension']['status'] == 'pending_admin'
        assert decided.json()['extension']['status'] == 'approved'
        assert again.json()['code'] == 'already_decided'
        stats = client.get(f'{API}/admin/stats').json()
        assert stats['confirmed'] == 1
        assert stats['pending_extensions'] == 0

        board = client.get(f'{API}/admin/extensions').json()
        assert [item['id'] for item in board['extensions']] == [extension_id]
        assert board['summary']['approved'] == 1
        assert Decimal(board['summary']['approved_revenue']) == Decimal(
            created.json()['extension']['total_amount']
        )

    @pytest.mark.integration
    def test_extension_read_back_and_status_filter(self, client: TestClient, period_id: str) -> None:
        hold = client.post(f'{API}/reservations/hold', json=hold_body(period_id))
        reservation_id = hold.json()['reservation']['id']
        client.post(f'{API}/reservations/{reservation_id}/confirm', json={'payment_ref': 'pay-1'})
        created = client.post(
            f'{API}/extensions/request',
            json={'reservation_id': reservation_id, 'additional_days': 1},
        )
        extension_id = created.json()['extension']['id']

        fetched = client.get(f'{API}/extensions/{extension_id}')
        unpaid = client.get(f'{API}/admin/extensions', params={'status': 'pending_payment'})
        approved = client.get(f'{API}/admin/extensions', params={'status': 'approved'})
        missing = client.get(f'{API}/extensions/01936d8f-5e73-7c4e-a9c5-123456789abc')

        assert fetched.status_code == 200
        assert fetched.json()['status'] == 'pending_payment'
        assert [item['id'] for item in unpaid.json()['extensions']] == [extension_id]
        assert approved.json()['extensions'] == []
        assert missing.status_code == 404


class TestAdminEndpoints:
    @pytest.mark.integration
    def test_move_reservation(self, client: TestClient, period_id: str) -> None:
        """
        Given: owner-a confirmed on slot 1 and owner-b holding slot 2
        When: an admin moves owner-a to slot 2, then to slot 3
        Then: the first move is a 409 slot_unavailable, the second lands on slot 3
        """
        # Arrange
        hold = client.post(f'{API}/reservations/hold', json=hold_body(period_id))
        reservation_id = hold.json()['reservation']['id']
        client.post(f'{API}/reservations/{reservation_id}/confirm', json={'payment_ref': 'pay-1'})
        client.post(
            f'{API}/reservations/hold', json=hold_body(period_id, slot_id=2, owner_id='owner-b')
        )

        # Act
        blocked = client.post(
            f'{API}/admin/reservations/{reservation_id}/move',
            json={'new_slot_id': 2, 'admin_ref': 'admin-1'},
        )
        moved = client.post(
            f'{API}/admin/reservations/{reservation_id}/move',
            json={'new_slot_id': 3, 'admin_ref': 'admin-1'},
        )

        # Assert
        assert blocked.status_code == 409
        assert blocked.json() == {'code': 'slot_unavailable', 'reservation': None}
        assert moved.status_code == 200
        assert moved.json()['reservation']['slot_id'] == 3
        assert moved.json()['reservation']['status'] == 'confirmed'

    @pytest.mark.integration
    def test_move_unknown_reservation_is_404(self, client: TestClient, period_id: str) -> None:
        response = client.post(
            f'{API}/admin/reservations/01936d8f-5e73-7c4e-a9c5-123456789abc/move',
            json={'new_slot_id': 2, 'admin_ref': 'admin-1'},
        )

        assert response.status_code == 404

    @pytest.mark.integration
    def test_list_reservations_with_status_filter(self, client: TestClient, period_id: str) -> None:
        held = client.post(f'{API}/reservations/hold', json=hold_body(period_id))
        confirmed = client.post(
            f'{API}/reservations/hold', json=hold_body(period_id, slot_id=2, owner_id='owner-b')
        )
        confirmed_id = confirmed.json()['reservation']['id']
        client.post(f'{API}/reservations/{confirmed_id}/confirm', json={'payment_ref': 'pay-b'})

        everything = client.get(f'{API}/admin/reservations')
        only_confirmed = client.get(f'{API}/admin/reservations', params={'status': 'confirmed'})
        invalid = client.get(f'{API}/admin/reservations', params={'status': 'bogus'})

        assert everything.status_code == 200
        assert {item['id'] for item in everything.json()} == {
            held.json()['reservation']['id'],
            confirmed_id,
        }
        assert [item['id'] for item in only_confirmed.json()] == [confirmed_id]
        assert invalid.status_code == 400

    @pytest.mark.integration
    def test_admin_waitlist(self, client: TestClient, period_id: str) -> None:
        client.post(
            f'{API}/waitlist/join',
            json={'period_id': period_id, 'owner_id': 'waiter-1', 'listing_id': 'listing-w'},
        )

        response = client.get(f'{API}/admin/waitlist')

        assert response.status_code == 200
        body = response.json()
        assert body['period']['id'] == period_id
        assert [entry['owner_id'] for entry in body['entries']] == ['waiter-1']
