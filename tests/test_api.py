import uuid

from conftest import signup
from quest_src.config import Config
from quest_src.redis_config import DAILY_RESET_JOB, RESET_QUEUE_NAME, get_redis_pool

API = "/api/v1"


def create_quest(client, headers, name="Read 10 pages", xp=30, type="daily"):
    response = client.post(f"{API}/quests", json={"name": name, "xp": xp, "type": type}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def toggle(client, headers, quest_id):
    return client.put(f"{API}/quests/{quest_id}/toggle", headers=headers)


class TestAuth:
    def test_signup_creates_fresh_player(self, client):
        response = client.post(f"{API}/auth/signup", json={"username": "Brave Knight", "password": "secret123"})

        assert response.status_code == 201
        body = response.json()
        assert body["access_token"]
        user = body["user"]
        assert user["username"] == "brave knight"
        assert user["display_name"] == "Brave Knight"
        assert user["custom_player_id"] == 1
        assert (user["xp"], user["level"], user["daily_streak"]) == (0, 1, 0)
        assert user["last_streak_update_date"] is None
        assert "password_hash" not in user
        assert "email_for_auth" not in user

    def test_player_ids_are_sequential(self, client):
        signup(client, "first")
        response = client.post(f"{API}/auth/signup", json={"username": "second", "password": "secret123"})
        assert response.json()["user"]["custom_player_id"] == 2

    def test_duplicate_username_is_rejected_case_insensitively(self, client):
        signup(client, "Hero")
        response = client.post(f"{API}/auth/signup", json={"username": "HERO", "password": "secret123"})
        assert response.status_code == 400

    def test_short_password_is_rejected(self, client):
        response = client.post(f"{API}/auth/signup", json={"username": "hero", "password": "123"})
        assert response.status_code == 400

    def test_login_with_correct_password(self, client):
        signup(client, "Hero", "secret123")
        response = client.post(f"{API}/auth/login", json={"username": "hero", "password": "secret123"})
        assert response.status_code == 200
        assert response.json()["user"]["username"] == "hero"

    def test_login_with_wrong_password(self, client):
        signup(client, "Hero", "secret123")
        response = client.post(f"{API}/auth/login", json={"username": "hero", "password": "wrong-one"})
        assert response.status_code == 401

    def test_login_unknown_user(self, client):
        response = client.post(f"{API}/auth/login", json={"username": "ghost", "password": "secret123"})
        assert response.status_code == 401


class TestUser:
    def test_state_requires_token(self, client):
        assert client.get(f"{API}/user/state").status_code == 401

    def test_state_rejects_bad_token(self, client):
        response = client.get(f"{API}/user/state", headers={"Authorization": "Bearer not.a.token"})
        assert response.status_code == 403

    def test_state_returns_progress(self, client):
        headers = signup(client, "Hero")
        response = client.get(f"{API}/user/state", headers=headers)
        assert response.status_code == 200
        assert response.json()["bio"] == "Brave adventurer!"

    def test_update_profile(self, client):
        headers = signup(client, "Hero")
        response = client.put(f"{API}/user/profile", json={"bio": "Slayer of chores"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["user"]["bio"] == "Slayer of chores"
        assert response.json()["user"]["display_name"] == "Hero"

    def test_update_profile_without_fields(self, client):
        headers = signup(client, "Hero")
        response = client.put(f"{API}/user/profile", json={}, headers=headers)
        assert response.status_code == 400


class TestQuests:
    def test_daily_quest_gets_todays_reset_date(self, client, clock):
        headers = signup(client)
        quest = create_quest(client, headers, type="daily")
        assert quest["last_reset_date"] == clock.current
        assert quest["is_completed"] is False

    def test_one_off_quest_has_no_reset_date(self, client, clock):
        headers = signup(client)
        quest = create_quest(client, headers, type="one-off")
        assert quest["last_reset_date"] is None
        assert clock.calls == 0

    def test_daily_quest_created_while_clock_is_down(self, client, clock):
        headers = signup(client)
        clock.available = False
        quest = create_quest(client, headers, type="daily")
        assert quest["last_reset_date"] is None

    def test_xp_must_be_positive(self, client):
        headers = signup(client)
        response = client.post(f"{API}/quests", json={"name": "Nap", "xp": 0, "type": "daily"}, headers=headers)
        assert response.status_code == 422

    def test_type_is_required(self, client):
        headers = signup(client)
        response = client.post(f"{API}/quests", json={"name": "Nap", "xp": 10}, headers=headers)
        assert response.status_code == 422

    def test_list_only_shows_own_quests(self, client):
        alice = signup(client, "alice")
        bob = signup(client, "bob")
        create_quest(client, alice, name="Alice 1")
        create_quest(client, alice, name="Alice 2")
        create_quest(client, bob, name="Bob 1")

        names = {quest["name"] for quest in client.get(f"{API}/quests", headers=alice).json()}
        assert names == {"Alice 1", "Alice 2"}

    def test_delete_quest(self, client):
        headers = signup(client)
        quest = create_quest(client, headers)
        assert client.delete(f"{API}/quests/{quest['id']}", headers=headers).status_code == 200
        assert client.get(f"{API}/quests", headers=headers).json() == []

    def test_cannot_delete_someone_elses_quest(self, client):
        alice = signup(client, "alice")
        bob = signup(client, "bob")
        quest = create_quest(client, alice)
        assert client.delete(f"{API}/quests/{quest['id']}", headers=bob).status_code == 404


class TestToggle:
    def test_completion_awards_xp_and_starts_streak(self, client, clock):
        headers = signup(client)
        quest = create_quest(client, headers, xp=30)

        response = toggle(client, headers, quest["id"])

        assert response.status_code == 200
        body = response.json()
        assert body["updated_quest"]["is_completed"] is True
        assert body["updated_quest"]["completed_at"] is not None
        user = body["updated_user"]
        assert user["xp"] == 30
        assert user["daily_streak"] == 1
        assert user["days_completed_this_cycle"] == 1
        assert user["last_streak_update_date"] == clock.current

    def test_uncompletion_returns_xp_but_keeps_streak(self, client):
        headers = signup(client)
        quest = create_quest(client, headers, xp=30)
        toggle(client, headers, quest["id"])

        body = toggle(client, headers, quest["id"]).json()

        assert body["updated_quest"]["is_completed"] is False
        assert body["updated_quest"]["completed_at"] is None
        assert body["updated_user"]["xp"] == 0
        assert body["updated_user"]["daily_streak"] == 1

    def test_level_up_carries_remainder(self, client):
        headers = signup(client)
        for name in ("a", "b", "c", "d"):
            quest = create_quest(client, headers, name=name, xp=30, type="one-off")
            user = toggle(client, headers, quest["id"]).json()["updated_user"]
        assert (user["xp"], user["level"]) == (20, 2)

    def test_streak_grows_on_consecutive_days(self, client, clock):
        headers = signup(client)
        quest = create_quest(client, headers)
        toggle(client, headers, quest["id"])
        toggle(client, headers, quest["id"])

        clock.current = "2024-01-12"
        user = toggle(client, headers, quest["id"]).json()["updated_user"]

        assert user["daily_streak"] == 2
        assert user["days_completed_this_cycle"] == 2

    def test_clock_outage_still_toggles(self, client, clock):
        headers = signup(client)
        quest = create_quest(client, headers, xp=10)
        clock.available = False

        response = toggle(client, headers, quest["id"])

        assert response.status_code == 200
        user = response.json()["updated_user"]
        assert user["xp"] == 10
        assert user["daily_streak"] == 0
        assert user["last_streak_update_date"] is None

    def test_unknown_quest(self, client):
        headers = signup(client)
        assert toggle(client, headers, uuid.uuid4()).status_code == 404

    def test_someone_elses_quest(self, client):
        alice = signup(client, "alice")
        bob = signup(client, "bob")
        quest = create_quest(client, alice)
        assert toggle(client, bob, quest["id"]).status_code == 404


class TestDailyResetEndpoint:
    def test_reset_reopens_daily_quests(self, client, clock):
        headers = signup(client)
        quest = create_quest(client, headers)
        toggle(client, headers, quest["id"])

        clock.current = "2024-01-12"
        response = client.post(f"{API}/system/daily-reset")

        assert response.status_code == 200
        assert response.json()["daily_quests_reset"] == 1
        assert response.json()["streaks_broken"] == 0
        quests = client.get(f"{API}/quests", headers=headers).json()
        assert quests[0]["is_completed"] is False
        assert quests[0]["last_reset_date"] == "2024-01-12"

        again = client.post(f"{API}/system/daily-reset").json()
        assert again["daily_quests_reset"] == 0

    def test_reset_breaks_lapsed_streak(self, client, clock):
        headers = signup(client)
        quest = create_quest(client, headers)
        toggle(client, headers, quest["id"])

        clock.current = "2024-01-14"
        response = client.post(f"{API}/system/daily-reset")

        assert response.json()["streaks_broken"] == 1
        user = client.get(f"{API}/user/state", headers=headers).json()
        assert (user["daily_streak"], user["days_completed_this_cycle"]) == (0, 0)

    def test_reset_without_clock_fails(self, client, clock):
        clock.available = False
        response = client.post(f"{API}/system/daily-reset")
        assert response.status_code == 503

    def test_system_key_is_enforced_when_configured(self, client, monkeypatch):
        monkeypatch.setattr(Config, "SYSTEM_API_KEY", "let-me-in")

        assert client.post(f"{API}/system/daily-reset").status_code == 403
        wrong = client.post(f"{API}/system/daily-reset", headers={"X-System-Key": "nope"})
        assert wrong.status_code == 403
        right = client.post(f"{API}/system/daily-reset", headers={"X-System-Key": "let-me-in"})
        assert right.status_code == 200


class FakeJob:
    job_id = "reset-job-1"


class FakeRedis:
    def __init__(self, job=FakeJob()):
        self.job = job
        self.enqueued = []

    async def enqueue_job(self, function, _queue_name=None):
        self.enqueued.append((function, _queue_name))
        return self.job


class TestScheduleEndpoint:
    def use_redis(self, client, redis):
        client.app.dependency_overrides[get_redis_pool] = lambda: redis

    def test_schedule_queues_job_on_reset_queue(self, client):
        redis = FakeRedis()
        self.use_redis(client, redis)

        response = client.post(f"{API}/system/daily-reset/schedule")

        assert response.status_code == 202
        assert response.json()["job_id"] == "reset-job-1"
        assert redis.enqueued == [(DAILY_RESET_JOB, RESET_QUEUE_NAME)]

    def test_schedule_conflicts_with_queued_job(self, client):
        self.use_redis(client, FakeRedis(job=None))
        assert client.post(f"{API}/system/daily-reset/schedule").status_code == 409


def test_health(client):
    assert client.get("/").json() == {"service": "quest-api", "status": "ok"}
