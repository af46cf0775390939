import pytest
from notifications.models import Notification

from notification import services
from team import services as team_services


@pytest.mark.django_db
class TestRecorder:

    def test_notify_leader(self, team, alice):
        message = services.notify_leader(team, alice)

        notification = Notification.objects.get(recipient=team.leader)
        assert notification.verb == services.JOIN_REQUEST_TITLE
        assert notification.description == message
        assert notification.target == team
        assert message.startswith('Alice requested to join team Alpha on [')

    def test_exists_for(self, team, alice, bob):
        services.notify_leader(team, alice)
        assert services.exists_for(team, alice) is True
        assert services.exists_for(team, bob) is False

    def test_clear_for_only_touches_one_team(self, make_team, team, leader, make_user, alice):
        other_leader = make_user(name='Omar')
        other = make_team(other_leader, name='Beta')
        services.notify_leader(team, alice)
        services.notify_leader(other, alice)

        assert services.clear_for(team, leader) == 1
        assert Notification.objects.filter(recipient=other_leader).count() == 1


@pytest.mark.django_db
class TestNotificationApi:

    def test_leader_inbox(self, client_for, team, leader, alice):
        team_services.request_join(team.pk, alice)
        client = client_for(leader)

        response = client.get('/notification/info/')
        assert response.status_code == 200
        assert len(response.data) == 1
        item = response.data[0]
        assert item['title'] == 'Team Join Request'
        assert item['sender']['id'] == alice.pk
        assert item['team_id'] == team.pk
        assert item['unread'] is True

        assert client.get('/notification/info/unread-count/').data == {'unread_count': 1}

        client.post(f"/notification/info/{item['id']}/mark-as-read/")
        assert client.get('/notification/info/unread-count/').data == {'unread_count': 0}

    def test_mark_all_as_read(self, client_for, team, leader, alice, bob):
        team_services.request_join(team.pk, alice)
        team_services.request_join(team.pk, bob)
        client = client_for(leader)

        response = client.post('/notification/info/mark-all-as-read/')
        assert response.status_code == 200
        assert client.get('/notification/info/unread-count/').data == {'unread_count': 0}

    def test_cannot_see_others_notifications(self, client_for, team, alice):
        team_services.request_join(team.pk, alice)
        notification = Notification.objects.get()

        client = client_for(alice)
        assert client.get('/notification/info/').data == []
        assert client.delete(f'/notification/info/{notification.pk}/').status_code == 404

    def test_filters(self, client_for, team, leader, alice, bob):
        team_services.request_join(team.pk, alice)
        team_services.request_join(team.pk, bob)
        client = client_for(leader)

        first = client.get('/notification/info/').data[-1]
        client.post(f"/notification/info/{first['id']}/mark-as-read/")

        unread = client.get('/notification/info/', {'unread': 'true'}).data
        assert len(unread) == 1
        assert client.get('/notification/info/', {'team': team.pk}).data[0]['team_id'] == team.pk
        assert client.get('/notification/info/', {'team': team.pk + 100}).data == []
