"""Direct-message conversation ids.

A DM conversation id is ``dm_<a>_<b>`` with the two usernames sorted. Chat
messages that do not start with the prefix belong to a pin's public chat and
carry the pin id instead.
"""

from fellowship.core.domain_types import DM_PREFIX


def conversation_id(user_a: str, user_b: str) -> str:
    first, second = sorted([user_a, user_b])
    return f"{DM_PREFIX}{first}_{second}"


def is_direct_conversation(conv_id: str | None) -> bool:
    return bool(conv_id) and conv_id.startswith(DM_PREFIX)


def other_participant(conv_id: str, me: str) -> str | None:
    """Return the peer of `me` in a DM conversation, or None if `me` is not in it.

    Usernames may themselves contain underscores, so the id is split by
    matching the known participant at either end rather than on "_".
    """
    if not is_direct_conversation(conv_id):
        return None
    body = conv_id[len(DM_PREFIX):]
    candidates = []
    if body.startswith(me + "_"):
        candidates.append(body[len(me) + 1:])
    if body.endswith("_" + me):
        candidates.append(body[: -(len(me) + 1)])
    for peer in candidates:
        if peer and conversation_id(me, peer) == conv_id:
            return peer
    return None


def is_participant(conv_id: str, username: str) -> bool:
    return other_participant(conv_id, username) is not None
