"""Member administration and phone lookup."""
from typing import Dict, List, Optional

from ..errors import ValidationError
from ..validators import MEMBER_SCHEMA, PHONE_SEARCH_SCHEMA, validate
from .base import ResourceService


class MemberService(ResourceService):
    """Members resource (cache root ``'members'``, list stale after 5 minutes).

    ``('members', <id>)`` is also invalidated by recharges and purchases,
    which change the member's balance on the server.
    """

    resource = 'members'
    label = 'Member'
    schema = MEMBER_SCHEMA

    def list_members(self) -> List[Dict]:
        return self._list(self._client.get_members)

    def get_member(self, member_id: Optional[str]) -> Optional[Dict]:
        return self._get(member_id, self._client.get_member)

    def create_member(self, member: Dict) -> Dict:
        return self._create(member, self._client.create_member)

    def update_member(self, member_id: str, changes: Dict) -> Dict:
        return self._update(member_id, changes, self._client.update_member)

    def delete_member(self, member_id: str) -> None:
        self._delete(member_id, self._client.delete_member)

    def search_by_phone(self, phone: str) -> Dict:
        """Return the member profile (member, recharge history, played history).

        The phone number is validated before the request is sent.
        """
        try:
            validate(PHONE_SEARCH_SCHEMA, {'phone': phone})
        except ValidationError as exc:
            self._notifier.error(exc.message)
            raise
        return self._client.search_member_by_phone(phone)

    def active_count(self) -> int:
        return sum(1 for m in self.list_members() if m.get('isActive'))
