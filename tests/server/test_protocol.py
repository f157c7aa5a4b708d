"""Tests for the socket wire format."""

import json

import pytest
from pydantic import ValidationError

from lockstep.rooms import BadRequest, Broadcast, Outbound, Room, Scope, User
from lockstep.router import ErrorInfo, Reply
from lockstep.server.protocol import (
    JoinRoom,
    SendMessage,
    VideoStateChange,
    decode_frame,
    encode_broadcast,
    encode_reply,
)


class TestDecodeFrame:
    def test_full_frame(self) -> None:
        frame = decode_frame(
            '{"event": "join_room", "data": {"roomId": "r1"}, "id": 7}'
        )

        assert frame.event == "join_room"
        assert frame.data == {"roomId": "r1"}
        assert frame.id == 7

    def test_data_and_id_are_optional(self) -> None:
        frame = decode_frame('{"event": "get_room_info"}')

        assert frame.data == {}
        assert frame.id is None

    @pytest.mark.parametrize(
        "text",
        ["not json", "[]", '{"data": {}}', '{"event": "x", "data": []}'],
    )
    def test_malformed_frame(self, text: str) -> None:
        with pytest.raises(BadRequest):
            decode_frame(text)


class TestPayloads:
    def test_accepts_camel_case(self) -> None:
        payload = VideoStateChange.model_validate(
            {
                "roomId": "r1",
                "videoState": {"isPlaying": True, "currentTime": 12.5},
            }
        )

        assert payload.video_state.is_playing is True
        assert payload.video_state.playback_speed == 1.0

    def test_username_is_trimmed(self) -> None:
        payload = JoinRoom.model_validate({"roomId": "r1", "username": "  Bob "})

        assert payload.username == "Bob"

    def test_blank_username_rejected(self) -> None:
        with pytest.raises(ValidationError):
            JoinRoom.model_validate({"roomId": "r1", "username": "   "})

    def test_negative_time_rejected(self) -> None:
        with pytest.raises(ValidationError):
            VideoStateChange.model_validate(
                {
                    "roomId": "r1",
                    "videoState": {"isPlaying": True, "currentTime": -1},
                }
            )

    def test_chat_ignores_client_identity(self) -> None:
        payload = SendMessage.model_validate(
            {
                "roomId": "r1",
                "message": {
                    "userId": "someone",
                    "username": "Mallory",
                    "content": "hi",
                    "type": "user",
                },
            }
        )

        assert payload.message.content == "hi"


class TestEncode:
    def test_result_reply(self) -> None:
        room = Room(id="r1", host_id="u1", users=[User(id="u1", username="A")])

        frame = json.loads(encode_reply(3, Reply(result={"room": room})))

        assert frame["id"] == 3
        assert frame["result"]["room"]["hostId"] == "u1"
        assert frame["result"]["room"]["users"][0]["isHost"] is False

    def test_error_reply(self) -> None:
        reply = Reply(error=ErrorInfo("RoomNotFound", "Room r1 not found"))

        frame = json.loads(encode_reply("abc", reply))

        assert frame == {
            "id": "abc",
            "error": {"code": "RoomNotFound", "message": "Room r1 not found"},
        }

    def test_broadcast(self) -> None:
        outbound = Outbound(Broadcast.VIDEO_URL_UPDATED, "http://v", Scope.ROOM)

        message = encode_broadcast("r1", outbound)

        assert json.loads(message.payload) == {
            "event": "video_url_updated",
            "data": "http://v",
        }
        assert message.metadata == {"event": "video_url_updated", "room_id": "r1"}
