from fastapi import status

from tests.conf_tests import (
    auth_headers,
    clear_db,
    client,
    other_headers,
    other_user,
    test_db,
    test_room,
    test_user,
)


# Tests
# pylint: disable-next=redefined-outer-name
def test_room_without_reviews(test_room):
    response = client.get(f"/rooms/{test_room.id}/reviews")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"average_rating": None, "count": 0, "reviews": []}


# pylint: disable-next=redefined-outer-name
def test_create_review_requires_authentication(test_room):
    response = client.post(f"/rooms/{test_room.id}/reviews", json={"rating": 5})
    assert response.status_code in [
        status.HTTP_401_UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN,
    ]


# pylint: disable-next=redefined-outer-name
def test_create_review_success(auth_headers, test_room, test_user):
    response = client.post(
        f"/rooms/{test_room.id}/reviews", json={"rating": 4, "comment": "Quiet and cold"}, headers=auth_headers
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["room_id"] == test_room.id
    assert data["rating"] == 4
    assert data["comment"] == "Quiet and cold"
    assert data["user"] == {"id": test_user.id, "name": test_user.name}


# pylint: disable-next=redefined-outer-name
def test_review_rating_out_of_range(auth_headers, test_room):
    for rating in (0, 6):
        response = client.post(f"/rooms/{test_room.id}/reviews", json={"rating": rating}, headers=auth_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# pylint: disable-next=redefined-outer-name
def test_review_unknown_room(auth_headers):
    response = client.post("/rooms/missing/reviews", json={"rating": 3}, headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert client.get("/rooms/missing/reviews").status_code == status.HTTP_404_NOT_FOUND


# pylint: disable-next=redefined-outer-name
def test_reviews_newest_first_with_average(auth_headers, other_headers, test_room):
    client.post(f"/rooms/{test_room.id}/reviews", json={"rating": 5}, headers=auth_headers)
    client.post(f"/rooms/{test_room.id}/reviews", json={"rating": 2, "comment": "Projector broken"}, headers=other_headers)

    response = client.get(f"/rooms/{test_room.id}/reviews")
    data = response.json()
    assert data["count"] == 2
    assert data["average_rating"] == 3.5
    assert [r["rating"] for r in data["reviews"]] == [2, 5]
