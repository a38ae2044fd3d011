"""
Organizer attendee management: listing, status changes with their
notifications, removal, waitlist promotion and check-in.
"""
import pytest
from fastapi import status
from app.models.attendee import Attendee, AttendeeStatus, AttendeeRole
from app.models.event import EventStatus
from app.models.notification import Notification, NotificationType
from tests.conftest import auth_headers


def _notifications_for(db, user):
    return db.query(Notification).filter(Notification.user_id == user.id).all()


# =============================================================================
# TEST: List attendees
# =============================================================================
class TestListAttendees:

    def test_organizer_sees_everything(self, client, sample_organizer, sample_published_event, make_attendee):
        make_attendee(sample_published_event, status=AttendeeStatus.APPROVED)
        make_attendee(sample_published_event, status=AttendeeStatus.PENDING)

        response = client.get(
            f"/api/events/{sample_published_event.id}/attendees",
            headers=auth_headers(sample_organizer)
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["isOwner"] is True
        assert len(data["data"]) == 2
        assert "email" in data["data"][0]
        assert "ticket_code" in data["data"][0]

    def test_filter_by_status_and_role(self, client, sample_organizer, sample_published_event, make_attendee):
        make_attendee(sample_published_event, status=AttendeeStatus.APPROVED, role=AttendeeRole.PRESENTER)
        make_attendee(sample_published_event, status=AttendeeStatus.APPROVED)
        make_attendee(sample_published_event, status=AttendeeStatus.WAITLIST)

        response = client.get(
            f"/api/events/{sample_published_event.id}/attendees",
            params={"status": "approved", "role": "presenter"},
            headers=auth_headers(sample_organizer)
        )

        assert len(response.json()["data"]) == 1
        assert response.json()["data"][0]["role"] == "presenter"

    def test_public_view_hides_private_fields(self, client, sample_published_event, make_attendee):
        make_attendee(sample_published_event, status=AttendeeStatus.APPROVED)
        make_attendee(sample_published_event, status=AttendeeStatus.PENDING)

        response = client.get(f"/api/events/{sample_published_event.id}/attendees")

        data = response.json()
        assert data["isOwner"] is False
        assert len(data["data"]) == 1
        assert "email" not in data["data"][0]
        assert "ticket_code" not in data["data"][0]

    def test_public_view_denied_for_draft_event(self, client, make_event):
        event = make_event(status=EventStatus.DRAFT)

        response = client.get(f"/api/events/{event.id}/attendees")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"] == "forbidden"

    def test_invalid_status_filter(self, client, sample_published_event):
        response = client.get(
            f"/api/events/{sample_published_event.id}/attendees",
            params={"status": "confirmed"}
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# =============================================================================
# TEST: Update attendee
# =============================================================================
class TestUpdateAttendee:

    def _update(self, client, event, attendee, user, payload):
        return client.put(
            f"/api/events/{event.id}/attendees/{attendee.id}",
            json=payload,
            headers=auth_headers(user)
        )

    def test_approve_pending_notifies_member(self, client, db, sample_organizer, sample_member, sample_published_event, make_attendee):
        attendee = make_attendee(
            sample_published_event,
            user_id=sample_member.id,
            status=AttendeeStatus.PENDING
        )

        response = self._update(client, sample_published_event, attendee, sample_organizer, {"status": "approved"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["status"] == "approved"
        notifications = _notifications_for(db, sample_member)
        assert len(notifications) == 1
        assert notifications[0].type == NotificationType.EVENT_APPROVED

    def test_reject_pending_notifies_member(self, client, db, sample_organizer, sample_member, sample_published_event, make_attendee):
        attendee = make_attendee(
            sample_published_event,
            user_id=sample_member.id,
            status=AttendeeStatus.PENDING
        )

        response = self._update(client, sample_published_event, attendee, sample_organizer, {"status": "rejected"})

        assert response.json()["data"]["status"] == "rejected"
        notifications = _notifications_for(db, sample_member)
        assert [n.type for n in notifications] == [NotificationType.EVENT_REJECTED]

    def test_guest_approval_sends_no_notification(self, client, db, sample_organizer, sample_published_event, make_attendee):
        attendee = make_attendee(sample_published_event, status=AttendeeStatus.PENDING, is_guest=True)

        response = self._update(client, sample_published_event, attendee, sample_organizer, {"status": "approved"})

        assert response.status_code == status.HTTP_200_OK
        assert db.query(Notification).count() == 0

    def test_same_status_is_no_op_without_notification(self, client, db, sample_organizer, sample_member, sample_published_event, make_attendee):
        attendee = make_attendee(sample_published_event, user_id=sample_member.id, status=AttendeeStatus.APPROVED)

        response = self._update(client, sample_published_event, attendee, sample_organizer, {"status": "approved"})

        assert response.status_code == status.HTTP_200_OK
        assert _notifications_for(db, sample_member) == []

    @pytest.mark.parametrize("current,target", [
        (AttendeeStatus.REJECTED, "approved"),
        (AttendeeStatus.CANCELLED, "approved"),
        (AttendeeStatus.CANCELLED, "pending"),
        (AttendeeStatus.APPROVED, "pending"),
        (AttendeeStatus.APPROVED, "waitlist"),
        (AttendeeStatus.WAITLIST, "rejected"),
    ])
    def test_illegal_transitions_refused(self, client, db, sample_organizer, sample_published_event, make_attendee, current, target):
        attendee = make_attendee(sample_published_event, status=current)

        response = self._update(client, sample_published_event, attendee, sample_organizer, {"status": target})

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error"] == "invalid_transition"
        db.refresh(attendee)
        assert attendee.status == current

    def test_approval_refused_when_full(self, client, db, sample_organizer, make_event, make_attendee):
        event = make_event(max_attendees=1, auto_approve=False)
        make_attendee(event, status=AttendeeStatus.APPROVED)
        pending = make_attendee(event, status=AttendeeStatus.PENDING)

        response = self._update(client, event, pending, sample_organizer, {"status": "approved"})

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error"] == "capacity_full"
        db.refresh(pending)
        assert pending.status == AttendeeStatus.PENDING

    def test_update_role_and_notes(self, client, sample_organizer, sample_published_event, make_attendee):
        attendee = make_attendee(sample_published_event)

        response = self._update(client, sample_published_event, attendee, sample_organizer, {
            "role": "presenter",
            "notes": "Keynote speaker",
        })

        data = response.json()["data"]
        assert data["role"] == "presenter"
        assert data["notes"] == "Keynote speaker"
        assert data["status"] == "approved"

    def test_non_organizer_forbidden(self, client, sample_member, sample_published_event, make_attendee):
        attendee = make_attendee(sample_published_event, status=AttendeeStatus.PENDING)

        response = self._update(client, sample_published_event, attendee, sample_member, {"status": "approved"})

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_anonymous_unauthorized(self, client, sample_published_event, make_attendee):
        attendee = make_attendee(sample_published_event)

        response = client.put(
            f"/api/events/{sample_published_event.id}/attendees/{attendee.id}",
            json={"status": "cancelled"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_attendee_not_found(self, client, sample_organizer, sample_published_event):
        response = client.get(
            f"/api/events/{sample_published_event.id}/attendees/missing",
            headers=auth_headers(sample_organizer)
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# TEST: Remove attendee
# =============================================================================
class TestRemoveAttendee:

    def test_remove_decrements_count_without_promotion(self, client, db, sample_organizer, sample_small_event, make_attendee):
        approved = make_attendee(sample_small_event, status=AttendeeStatus.APPROVED)
        make_attendee(sample_small_event, status=AttendeeStatus.APPROVED)
        waiting = make_attendee(sample_small_event, status=AttendeeStatus.WAITLIST)
        sample_small_event.registration_count = 3
        db.commit()
        approved_id = approved.id

        response = client.delete(
            f"/api/events/{sample_small_event.id}/attendees/{approved_id}",
            headers=auth_headers(sample_organizer)
        )

        assert response.status_code == status.HTTP_200_OK
        db.expunge(approved)
        assert db.query(Attendee).filter(Attendee.id == approved_id).first() is None
        db.refresh(waiting)
        assert waiting.status == AttendeeStatus.WAITLIST
        db.refresh(sample_small_event)
        assert sample_small_event.registration_count == 2

    def test_remove_never_drops_count_below_zero(self, client, db, sample_organizer, sample_published_event, make_attendee):
        attendee = make_attendee(sample_published_event)

        client.delete(
            f"/api/events/{sample_published_event.id}/attendees/{attendee.id}",
            headers=auth_headers(sample_organizer)
        )

        db.refresh(sample_published_event)
        assert sample_published_event.registration_count == 0

    def test_remove_guest_detaches_session(self, client, db, sample_organizer, sample_published_event, guest_payload):
        registered = client.post(f"/api/events/{sample_published_event.id}/attendees", json=guest_payload)
        attendee_id = registered.json()["data"]["id"]
        token = registered.cookies.get("guest_session")

        client.delete(
            f"/api/events/{sample_published_event.id}/attendees/{attendee_id}",
            headers=auth_headers(sample_organizer)
        )

        status_response = client.get(
            f"/api/events/{sample_published_event.id}/registration-status",
            headers={"Cookie": f"guest_session={token}"}
        )
        assert status_response.json()["data"] is None


# =============================================================================
# TEST: Waitlist promotion
# =============================================================================
class TestPromotion:

    def _promote(self, client, event, user):
        return client.post(f"/api/events/{event.id}/attendees/promote", headers=auth_headers(user))

    def test_capacity_scenario(self, client, db, sample_organizer, sample_small_event):
        """Two seats: A and B approved, C waitlisted; cancel A, promote C, then nothing left to promote."""
        ids = {}
        for name in ("a", "b", "c"):
            response = client.post(f"/api/events/{sample_small_event.id}/attendees", json={
                "full_name": name.upper(),
                "email": f"{name}@example.com",
            })
            ids[name] = response.json()["data"]["id"]
            assert response.json()["data"]["status"] == ("waitlist" if name == "c" else "approved")

        cancel = client.put(
            f"/api/events/{sample_small_event.id}/attendees/{ids['a']}",
            json={"status": "cancelled"},
            headers=auth_headers(sample_organizer)
        )
        assert cancel.json()["data"]["status"] == "cancelled"

        first = self._promote(client, sample_small_event, sample_organizer)
        assert first.status_code == status.HTTP_200_OK
        assert first.json()["data"]["id"] == ids["c"]
        assert first.json()["data"]["status"] == "approved"

        second = self._promote(client, sample_small_event, sample_organizer)
        assert second.status_code == status.HTTP_200_OK
        assert second.json()["data"] is None

        db.expire_all()
        approved = db.query(Attendee).filter(
            Attendee.event_id == sample_small_event.id,
            Attendee.status == AttendeeStatus.APPROVED
        ).count()
        assert approved == 2

    def test_oldest_waitlisted_first(self, client, db, sample_organizer, make_event, make_attendee):
        from datetime import datetime, timedelta, timezone
        event = make_event(max_attendees=1)
        now = datetime.now(timezone.utc)
        newer = make_attendee(event, status=AttendeeStatus.WAITLIST, registered_at=now)
        older = make_attendee(event, status=AttendeeStatus.WAITLIST, registered_at=now - timedelta(hours=1))

        response = self._promote(client, event, sample_organizer)

        assert response.json()["data"]["id"] == older.id
        db.refresh(newer)
        assert newer.status == AttendeeStatus.WAITLIST

    def test_no_promotion_while_full(self, client, db, sample_organizer, make_event, make_attendee):
        event = make_event(max_attendees=1)
        make_attendee(event, status=AttendeeStatus.APPROVED)
        waiting = make_attendee(event, status=AttendeeStatus.WAITLIST)

        response = self._promote(client, event, sample_organizer)

        assert response.json()["data"] is None
        db.refresh(waiting)
        assert waiting.status == AttendeeStatus.WAITLIST

    def test_promotion_respects_manual_approval(self, client, sample_organizer, make_event, make_attendee):
        event = make_event(max_attendees=1, auto_approve=False)
        waiting = make_attendee(event, status=AttendeeStatus.WAITLIST)

        response = self._promote(client, event, sample_organizer)

        assert response.json()["data"]["id"] == waiting.id
        assert response.json()["data"]["status"] == "pending"

    def test_promoted_member_notified(self, client, db, sample_organizer, sample_member, make_event, make_attendee):
        event = make_event(max_attendees=1)
        make_attendee(event, status=AttendeeStatus.WAITLIST, user_id=sample_member.id)

        self._promote(client, event, sample_organizer)

        notifications = _notifications_for(db, sample_member)
        assert [n.type for n in notifications] == [NotificationType.EVENT_WAITLIST_PROMOTED]

    def test_promotion_requires_organizer(self, client, sample_member, sample_small_event):
        response = self._promote(client, sample_small_event, sample_member)

        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# TEST: Check-in
# =============================================================================
class TestCheckIn:

    def _check_in(self, client, event, user, payload):
        return client.post(f"/api/events/{event.id}/check-in", json=payload, headers=auth_headers(user))

    def test_check_in_by_ticket_code(self, client, db, sample_organizer, sample_published_event, make_attendee):
        attendee = make_attendee(sample_published_event)

        response = self._check_in(client, sample_published_event, sample_organizer, {
            "ticket_code": attendee.ticket_code.lower()
        })

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["checked_in"] is True
        db.refresh(sample_published_event)
        assert sample_published_event.attendance_count == 1

    def test_check_in_twice(self, client, sample_organizer, sample_published_event, make_attendee):
        attendee = make_attendee(sample_published_event)
        self._check_in(client, sample_published_event, sample_organizer, {"attendee_id": attendee.id})

        response = self._check_in(client, sample_published_event, sample_organizer, {"attendee_id": attendee.id})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "already_checked_in"

    def test_check_in_requires_approval(self, client, sample_organizer, sample_published_event, make_attendee):
        attendee = make_attendee(sample_published_event, status=AttendeeStatus.WAITLIST)

        response = self._check_in(client, sample_published_event, sample_organizer, {"attendee_id": attendee.id})

        assert response.json()["error"] == "not_approved"

    def test_check_in_requires_identifier(self, client, sample_organizer, sample_published_event):
        response = self._check_in(client, sample_published_event, sample_organizer, {})

        assert response.json()["error"] == "validation_error"

    def test_check_in_stats(self, client, sample_organizer, sample_published_event, make_attendee):
        first = make_attendee(sample_published_event)
        make_attendee(sample_published_event)
        make_attendee(sample_published_event, status=AttendeeStatus.PENDING)
        self._check_in(client, sample_published_event, sample_organizer, {"attendee_id": first.id})

        response = client.get(
            f"/api/events/{sample_published_event.id}/check-in",
            headers=auth_headers(sample_organizer)
        )

        data = response.json()["data"]
        assert data["stats"] == {"total_approved": 2, "checked_in": 1, "not_checked_in": 1}
        assert [c["id"] for c in data["recentCheckins"]] == [first.id]
