import threading
from collections import Counter
from datetime import timedelta

import pytest
from django.db import OperationalError, connection
from django.utils import timezone
from notifications.models import Notification
from rest_framework.exceptions import NotFound, PermissionDenied

from competitionPlatform.exceptions import Conflict, OperationFailed
from competitions.models import CompetitionParticipant, CompetitionResult
from competitions.services import join_competition
from reimbursement.models import Reimbursement
from team import services
from team.models import PendingJoinRequest, Team, TeamMembership, TeamStatus


def assert_slot_invariant(team):
    team.refresh_from_db()
    assert team.open_slots == team.max_members - 1 - team.memberships.count()


def leader_notifications(team):
    return Notification.objects.filter(recipient=team.leader, target_object_id=str(team.pk))


class TestRequestJoin:

    def test_records_request_and_notifies_leader(self, team, alice):
        result = services.request_join(team.pk, alice)

        assert result.pk == team.pk
        assert PendingJoinRequest.objects.filter(user=alice, team=team).exists()

        notification = leader_notifications(team).get()
        assert notification.verb == 'Team Join Request'
        assert 'Alice requested to join team Alpha on [' in notification.description
        assert notification.actor == alice

    def test_does_not_change_team(self, team, alice):
        services.request_join(team.pk, alice)
        team.refresh_from_db()
        assert team.open_slots == 2
        assert team.memberships.count() == 0

    def test_unknown_team(self, alice, db):
        with pytest.raises(NotFound):
            services.request_join(999999, alice)

    def test_duplicate_request(self, team, alice):
        services.request_join(team.pk, alice)
        with pytest.raises(Conflict, match='already sent a join request'):
            services.request_join(team.pk, alice)
        assert PendingJoinRequest.objects.filter(user=alice, team=team).count() == 1
        assert leader_notifications(team).count() == 1

    def test_full_team(self, team, alice):
        Team.objects.filter(pk=team.pk).update(open_slots=0)
        with pytest.raises(Conflict, match='Team is already full'):
            services.request_join(team.pk, alice)

    def test_existing_member(self, team, leader, alice):
        services.request_join(team.pk, alice)
        services.decide(team.pk, leader, alice.pk, services.APPROVE)

        with pytest.raises(Conflict, match='already a member'):
            services.request_join(team.pk, alice)

    def test_already_participating(self, team, competition, alice):
        join_competition(competition, alice)
        with pytest.raises(Conflict, match='already participating'):
            services.request_join(team.pk, alice)

    def test_leader_cannot_join_own_team(self, team, leader):
        with pytest.raises(Conflict, match='already participating'):
            services.request_join(team.pk, leader)


class TestDecide:

    def test_approve_adds_member(self, team, leader, alice):
        services.request_join(team.pk, alice)
        result = services.decide(team.pk, leader, alice.pk, services.APPROVE)

        assert result['status'] == 'approved'
        approved = result['team']
        assert approved.open_slots == 1
        assert approved.ordered_members() == [alice]
        assert_slot_invariant(team)

        participant = CompetitionParticipant.objects.get(user=alice, competition=team.competition)
        leader_row = CompetitionParticipant.objects.get(user=leader, competition=team.competition)
        assert participant.team_id == team.pk
        assert participant.is_leader is False
        # 成员共享队长的成绩记录
        assert participant.result_id == leader_row.result_id

        assert not PendingJoinRequest.objects.filter(team=team).exists()
        assert not leader_notifications(team).exists()

    def test_members_keep_approval_order(self, team, leader, alice, bob):
        services.request_join(team.pk, bob)
        services.request_join(team.pk, alice)
        services.decide(team.pk, leader, alice.pk, services.APPROVE)
        services.decide(team.pk, leader, bob.pk, services.APPROVE)

        team.refresh_from_db()
        assert team.ordered_members() == [alice, bob]
        assert team.open_slots == 0
        assert_slot_invariant(team)

    def test_approve_inherits_reimburse_status(self, team, leader, alice):
        CompetitionParticipant.objects.filter(user=leader).update(reimburse_status='PENDING')
        services.request_join(team.pk, alice)
        services.decide(team.pk, leader, alice.pk, services.APPROVE)

        participant = CompetitionParticipant.objects.get(user=alice, competition=team.competition)
        assert participant.reimburse_status == 'PENDING'

    def test_approve_when_full_rolls_back(self, make_team, leader, alice, bob):
        team = make_team(leader, open_slots=1)
        services.request_join(team.pk, alice)
        services.request_join(team.pk, bob)
        services.decide(team.pk, leader, alice.pk, services.APPROVE)

        with pytest.raises(Conflict, match='Team is already full'):
            services.decide(team.pk, leader, bob.pk, services.APPROVE)

        team.refresh_from_db()
        assert team.open_slots == 0
        assert team.ordered_members() == [alice]
        assert not CompetitionParticipant.objects.filter(user=bob).exists()
        # 失败时申请记录一并回滚
        assert PendingJoinRequest.objects.filter(user=bob, team=team).exists()

    @pytest.mark.django_db(transaction=True)
    def test_concurrent_approvals_admit_exactly_k_members(self, make_team, make_user, leader, monkeypatch):
        monkeypatch.setattr(services, 'LOCK_RETRIES', 30)
        team = make_team(leader, open_slots=2)
        applicants = [make_user() for _ in range(5)]
        for user in applicants:
            services.request_join(team.pk, user)

        barrier = threading.Barrier(len(applicants))
        guard = threading.Lock()
        outcomes = []

        def approve(user):
            try:
                barrier.wait()
                try:
                    services.decide(team.pk, leader, user.pk, services.APPROVE)
                    outcome = 'approved'
                except Conflict as exc:
                    outcome = str(exc.detail)
                with guard:
                    outcomes.append(outcome)
            finally:
                connection.close()

        workers = [threading.Thread(target=approve, args=(user,)) for user in applicants]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        assert Counter(outcomes) == {'approved': 2, 'Team is already full': 3}
        team.refresh_from_db()
        assert team.open_slots == 0
        assert team.memberships.count() == 2
        assert CompetitionParticipant.objects.filter(team=team, is_leader=False).count() == 2
        assert_slot_invariant(team)

    def test_lock_contention_gives_up_with_conflict(self, team, leader, alice, monkeypatch):
        services.request_join(team.pk, alice)
        calls = []

        def locked(*args):
            calls.append(args)
            raise OperationalError('database table is locked')

        monkeypatch.setattr(services, '_decide', locked)
        monkeypatch.setattr(services.time, 'sleep', lambda seconds: None)

        with pytest.raises(Conflict, match='Team is busy'):
            services.decide(team.pk, leader, alice.pk, services.APPROVE)
        assert len(calls) == services.LOCK_RETRIES

    def test_approve_unknown_member(self, team, leader):
        with pytest.raises(NotFound):
            services.decide(team.pk, leader, 999999, services.APPROVE)
        team.refresh_from_db()
        assert team.open_slots == 2

    def test_approve_participant_elsewhere(self, team, competition, leader, alice):
        services.request_join(team.pk, alice)
        join_competition(competition, alice)

        with pytest.raises(Conflict, match='already participating'):
            services.decide(team.pk, leader, alice.pk, services.APPROVE)
        assert_slot_invariant(team)

    def test_reject_leaves_team_unchanged(self, team, leader, alice):
        services.request_join(team.pk, alice)
        result = services.decide(team.pk, leader, alice.pk, services.REJECT)

        assert result == {'msg': 'rejected by leader', 'status': 'rejected'}
        team.refresh_from_db()
        assert team.open_slots == 2
        assert team.memberships.count() == 0
        assert not PendingJoinRequest.objects.filter(team=team).exists()
        assert not leader_notifications(team).exists()

    def test_rejected_user_can_request_again(self, team, leader, alice):
        services.request_join(team.pk, alice)
        services.decide(team.pk, leader, alice.pk, services.REJECT)
        services.request_join(team.pk, alice)
        assert PendingJoinRequest.objects.filter(user=alice, team=team).exists()

    def test_only_leader_decides(self, team, alice, bob):
        services.request_join(team.pk, bob)
        with pytest.raises(PermissionDenied):
            services.decide(team.pk, alice, bob.pk, services.APPROVE)
        assert PendingJoinRequest.objects.filter(user=bob).exists()

    def test_unexpected_error_is_reported_generically(self, team, leader, alice, monkeypatch):
        services.request_join(team.pk, alice)

        def boom(**kwargs):
            raise RuntimeError('database went away')

        monkeypatch.setattr(TeamMembership.objects, 'create', boom)

        with pytest.raises(OperationFailed) as exc_info:
            services.decide(team.pk, leader, alice.pk, services.APPROVE)

        assert str(exc_info.value.detail) == 'Failed to approve team member'
        team.refresh_from_db()
        assert team.open_slots == 2
        assert leader_notifications(team).exists()


class TestStopPublication:

    def test_closes_team_and_keeps_members(self, team, leader, alice, bob):
        services.request_join(team.pk, alice)
        services.decide(team.pk, leader, alice.pk, services.APPROVE)
        services.request_join(team.pk, bob)

        stopped = services.stop_publication(team.pk, leader)

        assert stopped.open_slots == 0
        assert stopped.status == TeamStatus.INACTIVE
        assert stopped.ordered_members() == [alice]
        assert not PendingJoinRequest.objects.filter(team=team).exists()
        assert not leader_notifications(team).exists()

    def test_blocks_new_requests(self, team, leader, alice):
        services.stop_publication(team.pk, leader)
        with pytest.raises(Conflict, match='Team is already full'):
            services.request_join(team.pk, alice)

    def test_expired_competition_still_closes(self, make_competition, make_team, leader):
        competition = make_competition(title='Past Cup', ends_in=timedelta(days=30))
        team = make_team(leader, competition=competition)
        competition.end_date = timezone.now() - timedelta(days=1)
        competition.save()

        with pytest.raises(Conflict, match='Competition has expired'):
            services.stop_publication(team.pk, leader)

        team.refresh_from_db()
        assert team.open_slots == 0
        assert team.status == TeamStatus.INACTIVE

    def test_only_leader(self, team, alice):
        with pytest.raises(PermissionDenied):
            services.stop_publication(team.pk, alice)
        team.refresh_from_db()
        assert team.status == TeamStatus.ACTIVE


class TestDeleteTeam:

    def test_cascades(self, team, leader, alice, bob, upload):
        competition = team.competition
        services.request_join(team.pk, alice)
        services.decide(team.pk, leader, alice.pk, services.APPROVE)
        services.request_join(team.pk, bob)
        Reimbursement.objects.create(
            competition=competition, user=leader, name='Lena', bank_name='BNI',
            card_number='1234567890', receipt=upload()
        )

        result = services.delete_team(team.pk, leader)

        assert result == {'msg': 'team deleted', 'id': team.pk}
        assert not Team.objects.filter(pk=team.pk).exists()
        assert not CompetitionParticipant.objects.filter(competition=competition).exists()
        assert not CompetitionResult.objects.filter(competition=competition).exists()
        assert not Reimbursement.objects.filter(competition=competition).exists()
        assert not PendingJoinRequest.objects.filter(competition=competition).exists()
        assert not Notification.objects.filter(recipient=leader).exists()

    def test_former_member_can_join_again(self, team, competition, leader, alice):
        services.request_join(team.pk, alice)
        services.decide(team.pk, leader, alice.pk, services.APPROVE)
        services.delete_team(team.pk, leader)

        join_competition(competition, alice)
        assert CompetitionParticipant.objects.filter(user=alice, competition=competition).exists()

    def test_only_leader(self, team, alice):
        with pytest.raises(PermissionDenied):
            services.delete_team(team.pk, alice)
        assert Team.objects.filter(pk=team.pk).exists()

    def test_unknown_team(self, leader):
        with pytest.raises(NotFound):
            services.delete_team(424242, leader)

    def test_failure_rolls_back_everything(self, team, leader, alice, bob, monkeypatch):
        competition = team.competition
        services.request_join(team.pk, alice)
        services.decide(team.pk, leader, alice.pk, services.APPROVE)
        services.request_join(team.pk, bob)

        def boom(*args):
            raise RuntimeError('notification store unavailable')

        monkeypatch.setattr(services.notifications, 'clear_for', boom)

        with pytest.raises(OperationFailed, match='Failed to delete team'):
            services.delete_team(team.pk, leader)

        assert Team.objects.filter(pk=team.pk).exists()
        assert CompetitionParticipant.objects.filter(team=team).count() == 2
        assert CompetitionResult.objects.filter(competition=competition, user=leader).exists()
        assert PendingJoinRequest.objects.filter(user=bob, team=team).exists()
        assert leader_notifications(team).count() == 1
