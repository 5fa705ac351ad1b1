"""Locust load-test file exercising the recommendation feed.

Run standalone, e.g.:

    LOAD_TEST_USERNAME=loadtest LOAD_TEST_PASSWORD=... \
    locust -f load/recommendations.py --headless -u 100 -r 10 -t 5m \
           --host https://staging.vidshare.example

Each simulated user logs in once and then mostly pages through its
recommendations, with the occasional trending-feed request for contrast.
The account should have a non-empty watch history, otherwise every
recommendation request short-circuits to an empty page.
"""

import os
import random

from locust import HttpUser, between, task

USERNAME = os.getenv("LOAD_TEST_USERNAME", "loadtest")
PASSWORD = os.getenv("LOAD_TEST_PASSWORD", "loadtest-password")


class RecommendationUser(HttpUser):  # noqa: D401 – Locust user class
    wait_time = between(0.5, 1.5)

    def on_start(self):
        response = self.client.post(
            "/api/v1/users/login",
            json={"username": USERNAME, "password": PASSWORD},
            name="login",
        )
        response.raise_for_status()
        token = response.json()["data"]["accessToken"]
        self.client.headers["Authorization"] = f"Bearer {token}"

    @task(4)
    def recommended(self):
        self.client.get(
            "/api/v1/video/recommended",
            params={"page": random.randint(1, 3), "pageSize": 12},
            name="/api/v1/video/recommended",
        )

    @task(1)
    def trending(self):
        self.client.get("/api/v1/video/trending", params={"pageSize": 12})
