"""
Grid allocation: claim, confirm, release, expiry and giveaway
"""
import threading
from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from api.crud import box_crud
from api.crud.game_crud import advance_status, create_game, get_game_boxes
from core.exceptions import BoxesUnavailable, GameClosed, NotEnoughBoxes, ProfileNotFound
from models.box import BoxStatus
from models.game import GameStatus
from services import grid_service
from db import Base
from schemas.game import GameCreate
from conftest import auth_headers, make_profile


def assert_owner_invariant(db, game_id):
    """available <=> no owner"""
    for box in get_game_boxes(db, game_id):
        if box.status == BoxStatus.AVAILABLE:
            assert box.user_id is None, f"available box {box.id} has owner {box.user_id}"
        else:
            assert box.user_id is not None, f"{box.status.value} box {box.id} has no owner"


def statuses(db, ids):
    return {box.id: box.status for box in box_crud.get_boxes_by_ids(db, ids)}


class TestClaim:

    def test_new_game_has_full_grid(self, db, game, box_ids):
        boxes = get_game_boxes(db, game.id)
        assert len(boxes) == 100
        assert {(b.row_index, b.col_index) for b in boxes} == {(r, c) for r in range(10) for c in range(10)}
        assert all(b.status == BoxStatus.AVAILABLE for b in boxes)

    def test_claim_reserves_boxes(self, db, game, alice, box_ids):
        claimed = box_crud.claim_boxes(db, game.id, alice.id, box_ids[:3])

        assert claimed == box_ids[:3]
        for box in box_crud.get_boxes_by_ids(db, box_ids[:3]):
            assert box.status == BoxStatus.RESERVED
            assert box.user_id == alice.id
            assert box.reserved_at is not None
            assert box.is_free is False
        assert_owner_invariant(db, game.id)

    def test_second_claimant_fails(self, db, game, alice, bob, box_ids):
        box_crud.claim_boxes(db, game.id, alice.id, [box_ids[0]])

        with pytest.raises(BoxesUnavailable) as exc_info:
            box_crud.claim_boxes(db, game.id, bob.id, [box_ids[0]])

        assert exc_info.value.status_code == 409
        assert exc_info.value.box_ids == [box_ids[0]]
        box = box_crud.get_boxes_by_ids(db, [box_ids[0]])[0]
        assert box.user_id == alice.id

    def test_claim_is_all_or_nothing(self, db, game, alice, bob, box_ids):
        box_crud.claim_boxes(db, game.id, alice.id, [box_ids[1]])

        with pytest.raises(BoxesUnavailable) as exc_info:
            box_crud.claim_boxes(db, game.id, bob.id, box_ids[:3])

        assert exc_info.value.box_ids == [box_ids[1]]
        # Вільні клітинки з того ж запиту не зарезервовані
        assert statuses(db, [box_ids[0], box_ids[2]]) == {
            box_ids[0]: BoxStatus.AVAILABLE,
            box_ids[2]: BoxStatus.AVAILABLE,
        }
        assert_owner_invariant(db, game.id)

    def test_claim_rejects_boxes_of_other_game(self, db, game, alice, box_ids):
        with pytest.raises(BoxesUnavailable):
            box_crud.claim_boxes(db, game.id + 1, alice.id, box_ids[:2])

    def test_claim_closed_once_game_is_live(self, db, game, alice, box_ids):
        advance_status(db, game.id, GameStatus.LIVE, [GameStatus.SELLING])
        db.refresh(game)

        with pytest.raises(GameClosed):
            grid_service.claim_boxes_logic(db, game, alice, box_ids[:1])

    def test_claim_allowed_after_numbers_assigned(self, db, game, alice, box_ids):
        grid_service.assign_numbers(db, game)

        result = grid_service.claim_boxes_logic(db, game, alice, box_ids[:2])
        assert result["claimed"] == 2

    def test_claim_logic_reports_amount_due(self, db, game, alice, box_ids):
        result = grid_service.claim_boxes_logic(db, game, alice, box_ids[:10])
        assert result["amount_due"] == 35
        assert result["box_ids"] == box_ids[:10]


class TestConfirmAndRelease:

    def test_confirm_moves_reserved_to_confirmed(self, db, game, alice, box_ids):
        box_crud.claim_boxes(db, game.id, alice.id, box_ids[:2])

        confirmed = grid_service.confirm_payment(db, game, alice.id)

        assert sorted(confirmed) == box_ids[:2]
        for box in box_crud.get_boxes_by_ids(db, box_ids[:2]):
            assert box.status == BoxStatus.CONFIRMED
            assert box.confirmed_at is not None
        assert_owner_invariant(db, game.id)

    def test_confirm_with_nothing_reserved(self, db, game, alice):
        assert grid_service.confirm_payment(db, game, alice.id) == []

    def test_release_keeps_confirmed(self, db, game, alice, box_ids):
        box_crud.claim_boxes(db, game.id, alice.id, box_ids[:2])
        grid_service.confirm_payment(db, game, alice.id)
        box_crud.claim_boxes(db, game.id, alice.id, box_ids[2:4])

        released = grid_service.release_boxes(db, game, alice.id)

        assert sorted(released) == box_ids[2:4]
        assert statuses(db, box_ids[:4]) == {
            box_ids[0]: BoxStatus.CONFIRMED,
            box_ids[1]: BoxStatus.CONFIRMED,
            box_ids[2]: BoxStatus.AVAILABLE,
            box_ids[3]: BoxStatus.AVAILABLE,
        }
        assert_owner_invariant(db, game.id)

    def test_upgrade_amount_after_confirmation(self, db, game, alice, box_ids):
        box_crud.claim_boxes(db, game.id, alice.id, box_ids[:10])
        grid_service.confirm_payment(db, game, alice.id)

        result = grid_service.claim_boxes_logic(db, game, alice, box_ids[10:20])

        assert result["amount_due"] == 25


class TestExpiry:

    def test_expires_only_stale_reservations(self, db, game, alice, bob, box_ids):
        now = box_crud.utcnow()
        box_crud.claim_boxes(db, game.id, alice.id, box_ids[:2], now=now - timedelta(minutes=15))
        box_crud.claim_boxes(db, game.id, bob.id, box_ids[2:4], now=now - timedelta(minutes=2))

        expired = box_crud.expire_reservations(db, ttl_minutes=10, now=now)

        assert {game.id: sorted(expired[game.id])} == {game.id: box_ids[:2]}
        assert statuses(db, box_ids[:4]) == {
            box_ids[0]: BoxStatus.AVAILABLE,
            box_ids[1]: BoxStatus.AVAILABLE,
            box_ids[2]: BoxStatus.RESERVED,
            box_ids[3]: BoxStatus.RESERVED,
        }
        assert_owner_invariant(db, game.id)

    def test_expiry_never_touches_confirmed(self, db, game, alice, box_ids):
        long_ago = box_crud.utcnow() - timedelta(hours=3)
        box_crud.claim_boxes(db, game.id, alice.id, box_ids[:3], now=long_ago)
        box_crud.confirm_user_boxes(db, game.id, alice.id, now=long_ago)

        expired = box_crud.expire_reservations(db, ttl_minutes=10)

        assert expired == {}
        for box in box_crud.get_boxes_by_ids(db, box_ids[:3]):
            assert box.status == BoxStatus.CONFIRMED
            assert box.user_id == alice.id

    def test_expired_box_can_be_claimed_again(self, db, game, alice, bob, box_ids):
        now = box_crud.utcnow()
        box_crud.claim_boxes(db, game.id, alice.id, [box_ids[0]], now=now - timedelta(minutes=11))
        box_crud.expire_reservations(db, ttl_minutes=10, now=now)

        assert box_crud.claim_boxes(db, game.id, bob.id, [box_ids[0]]) == [box_ids[0]]


class TestGiveaway:

    def test_gives_boxes_in_grid_order(self, db, game, alice, bob, box_ids):
        box_crud.claim_boxes(db, game.id, alice.id, [box_ids[0]])

        given = grid_service.distribute_giveaway(db, game, {alice.id: 2, bob.id: 3})

        assert given[alice.id] == box_ids[1:3]
        assert given[bob.id] == box_ids[3:6]
        for box in box_crud.get_boxes_by_ids(db, box_ids[1:6]):
            assert box.status == BoxStatus.CONFIRMED
            assert box.is_free is True
        assert_owner_invariant(db, game.id)

    def test_free_boxes_do_not_grow_the_pot(self, db, game, alice, box_ids):
        grid_service.distribute_giveaway(db, game, {alice.id: 5})

        stats = grid_service.game_stats(db, game)

        assert stats["free"] == 5
        assert stats["confirmed"] == 5
        assert stats["pot"] == 0

    def test_not_enough_boxes(self, db, game, alice, bob, box_ids):
        box_crud.claim_boxes(db, game.id, alice.id, box_ids[:95])

        with pytest.raises(NotEnoughBoxes):
            grid_service.distribute_giveaway(db, game, {bob.id: 6})

        assert grid_service.game_stats(db, game)["available"] == 5

    def test_retrying_same_allocation_gives_nothing_more(self, db, game, alice):
        grid_service.distribute_giveaway(db, game, {alice.id: 2})

        again = grid_service.distribute_giveaway(db, game, {alice.id: 2})

        assert again == {}
        assert grid_service.game_stats(db, game)["free"] == 2

    def test_allocation_tops_up_to_target(self, db, game, alice, bob, box_ids):
        grid_service.distribute_giveaway(db, game, {alice.id: 2})

        given = grid_service.distribute_giveaway(db, game, {alice.id: 3, bob.id: 1})

        assert given == {alice.id: [box_ids[2]], bob.id: [box_ids[3]]}
        assert grid_service.game_stats(db, game)["free"] == 4

    def test_unknown_user(self, db, game):
        with pytest.raises(ProfileNotFound):
            grid_service.distribute_giveaway(db, game, {"ghost": 1})


class TestClaimApi:

    def test_claim_and_list_mine(self, client, game, box_ids):
        headers = auth_headers("carol", "Carol King")

        response = client.post(f"/games/{game.id}/boxes/claim", json={"box_ids": box_ids[:2]}, headers=headers)
        assert response.status_code == 200
        assert response.json()["claimed"] == 2
        assert response.json()["amount_due"] == 10

        mine = client.get(f"/games/{game.id}/boxes/mine", headers=headers).json()
        assert [b["id"] for b in mine["reserved"]] == box_ids[:2]
        assert mine["confirmed"] == []
        assert mine["amount_due"] == 10

    def test_first_login_creates_profile(self, client):
        response = client.get("/auth/me", headers=auth_headers("dave", "Dave Grohl"))

        assert response.status_code == 200
        assert response.json()["id"] == "dave"
        assert response.json()["full_name"] == "Dave Grohl"
        assert response.json()["role"] == "user"

    def test_conflict_lists_taken_boxes(self, client, game, box_ids):
        client.post(f"/games/{game.id}/boxes/claim", json={"box_ids": [box_ids[5]]}, headers=auth_headers("carol"))

        response = client.post(
            f"/games/{game.id}/boxes/claim",
            json={"box_ids": [box_ids[4], box_ids[5]]},
            headers=auth_headers("dave"),
        )

        assert response.status_code == 409
        assert response.json()["box_ids"] == [box_ids[5]]
        assert response.json()["type"] == "pool_error"

    def test_claim_requires_token(self, client, game, box_ids):
        response = client.post(f"/games/{game.id}/boxes/claim", json={"box_ids": box_ids[:1]})
        assert response.status_code in (401, 403)

    def test_duplicate_ids_rejected(self, client, game, box_ids):
        response = client.post(
            f"/games/{game.id}/boxes/claim",
            json={"box_ids": [box_ids[0], box_ids[0]]},
            headers=auth_headers("carol"),
        )
        assert response.status_code == 422

    def test_cancel_my_reservations(self, client, game, box_ids):
        headers = auth_headers("carol")
        client.post(f"/games/{game.id}/boxes/claim", json={"box_ids": box_ids[:3]}, headers=headers)

        response = client.delete(f"/games/{game.id}/boxes/mine", headers=headers)

        assert response.status_code == 200
        assert response.json()["updated"] == 3

    def test_unknown_game(self, client):
        response = client.get("/games/999/boxes")
        assert response.status_code == 404
        assert response.json()["detail"] == "Game not found"

    def test_cron_expiry_endpoint(self, client, db, game, alice, box_ids):
        box_crud.claim_boxes(db, game.id, alice.id, box_ids[:2], now=box_crud.utcnow() - timedelta(minutes=30))

        response = client.post("/cron/expire-reservations")

        assert response.status_code == 200
        assert response.json() == {"expired": 2}


class TestConcurrentClaims:
    """Two claimants racing for the same cell, each with its own connection"""

    @pytest.fixture
    def file_sessionmaker(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'race.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        Base.metadata.create_all(bind=engine)
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
        engine.dispose()

    def race(self, Session, game_id, claims):
        barrier = threading.Barrier(len(claims))
        outcomes = {}

        def claim(user_id, ids):
            db = Session()
            try:
                barrier.wait()
                outcomes[user_id] = box_crud.claim_boxes(db, game_id, user_id, ids)
            except BoxesUnavailable as e:
                outcomes[user_id] = e
            finally:
                db.close()

        threads = [threading.Thread(target=claim, args=(user_id, ids)) for user_id, ids in claims.items()]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)
        return outcomes

    def test_exactly_one_claimant_wins(self, file_sessionmaker):
        setup = file_sessionmaker()
        try:
            make_profile(setup, "alice", "Alice Walker")
            make_profile(setup, "bob", "Bob Stone")
            game = create_game(setup, GameCreate(
                home_team="Seattle Seahawks", home_abbreviation="SEA",
                away_team="New England Patriots", away_abbreviation="NE",
            ))
            game_id = game.id
            box_id = get_game_boxes(setup, game_id)[0].id
        finally:
            setup.close()

        for _ in range(5):
            outcomes = self.race(file_sessionmaker, game_id, {"alice": [box_id], "bob": [box_id]})

            winners = [user_id for user_id, outcome in outcomes.items() if outcome == [box_id]]
            losers = [outcome for outcome in outcomes.values() if isinstance(outcome, BoxesUnavailable)]
            assert len(winners) == 1
            assert len(losers) == 1
            assert losers[0].box_ids == [box_id]

            check = file_sessionmaker()
            try:
                box = box_crud.get_boxes_by_ids(check, [box_id])[0]
                assert box.status == BoxStatus.RESERVED
                assert box.user_id == winners[0]
                # Звільняємо клітинку для наступного раунду
                box_crud.release_user_boxes(check, game_id, winners[0])
            finally:
                check.close()
