from __future__ import annotations

from coursekit.repos.kv_store import KeyValueStore

_SIGNUP_PREFIX = "MEETUP_SIGNUP#"


def _pk(learner_id: str) -> str:
    return f"STUDENT#{learner_id}"


class MeetupSignupRepo:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def create(self, learner_id: str, meetup_id: str, signed_up_at: str) -> bool:
        """Record a signup.  False if the learner was already signed up."""
        return await self._store.put_if_absent(
            _pk(learner_id),
            f"{_SIGNUP_PREFIX}{meetup_id}",
            {
                "entityType": "MEETUP_SIGNUP",
                "meetupId": meetup_id,
                "signedUpAt": signed_up_at,
            },
        )

    async def meetup_ids_for(self, learner_id: str) -> set[str]:
        items = await self._store.query(_pk(learner_id), _SIGNUP_PREFIX)
        return {item["meetupId"] for item in items}
