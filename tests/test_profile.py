import pytest

from reimbursement.models import Reimbursement
from team import services as team_services
from userProfile.models import Profile


@pytest.mark.django_db
class TestProfile:

    def test_profile_created_on_first_view(self, client_for, alice):
        response = client_for(alice).get('/profile/view/')

        assert response.status_code == 200
        assert response.data['student_id'] == alice.student_id
        assert response.data['major'] == 'Informatics'
        assert response.data['role_name'] == 'Student'
        assert Profile.objects.filter(user=alice).exists()

    def test_update_profile_picture(self, client_for, alice, upload):
        response = client_for(alice).patch(
            '/profile/view/',
            {'bio': 'Likes puzzles', 'picture': upload('me.png')},
            format='multipart',
        )

        assert response.status_code == 200
        profile = Profile.objects.get(user=alice)
        assert profile.bio == 'Likes puzzles'
        assert profile.picture.name.startswith('picture/')

    def test_picture_must_be_image(self, client_for, alice, upload):
        response = client_for(alice).patch(
            '/profile/view/', {'picture': upload('cv.pdf', b'%PDF', 'application/pdf')}, format='multipart'
        )
        assert response.status_code == 400

    def test_my_teams(self, client_for, team, leader, alice):
        team_services.request_join(team.pk, alice)
        team_services.decide(team.pk, leader, alice.pk, team_services.APPROVE)

        for user in (leader, alice):
            response = client_for(user).get('/profile/teams/')
            assert [t['id'] for t in response.data] == [team.pk]

    def test_my_competitions(self, client_for, competition, team, leader, alice):
        assert [c['id'] for c in client_for(leader).get('/profile/competitions/').data] == [competition.pk]
        assert client_for(alice).get('/profile/competitions/').data == []

    def test_my_reimbursements(self, client_for, competition, team, leader, alice, upload):
        claim = Reimbursement.objects.create(
            competition=competition, user=leader, name='Lena', bank_name='BNI',
            card_number='0011223344', receipt=upload()
        )

        response = client_for(leader).get('/profile/reimbursements/')
        assert [r['id'] for r in response.data] == [claim.pk]

        assert client_for(leader).get(f'/profile/reimbursements/{claim.pk}/').status_code == 200
        assert client_for(alice).get(f'/profile/reimbursements/{claim.pk}/').status_code == 404
