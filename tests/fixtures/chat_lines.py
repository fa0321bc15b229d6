"""
Raw chat lines as Twitch sends them, for parser and dispatcher tests
"""

PRIVMSG_FULL = (
    "@badges=moderator/1,subscriber/12;color=#FF0000;display-name=Foo;id=abc;mod=1;"
    "room-id=10;subscriber=1;tmi-sent-ts=1700000000000;turbo=0;user-id=20 "
    ":foo!foo@foo.tmi.twitch.tv PRIVMSG #chan :hello world"
)

PRIVMSG_MINIMAL = ":bar!bar@bar.tmi.twitch.tv PRIVMSG #chan :hi"

PRIVMSG_COLONS = (
    "@display-name=Foo;room-id=10;user-id=20 "
    ":foo!foo@foo.tmi.twitch.tv PRIVMSG #chan ::) time is 12:30"
)

PING = "PING :tmi.twitch.tv"

RECONNECT = ":tmi.twitch.tv RECONNECT"

ROOMSTATE_FULL = (
    "@emote-only=0;followers-only=-1;r9k=0;room-id=10;slow=0;subs-only=0 "
    ":tmi.twitch.tv ROOMSTATE #chan"
)

ROOMSTATE_SLOW_ONLY = "@room-id=10;slow=30 :tmi.twitch.tv ROOMSTATE #chan"

USERSTATE = (
    "@badges=broadcaster/1;color=#00FF00;display-name=MechBot;mod=0;subscriber=0;turbo=0 "
    ":tmi.twitch.tv USERSTATE #chan"
)

USERNOTICE = (
    "@badges=;display-name=;login=subber;msg-id=resub;room-id=10;"
    r"system-msg=subber\ssubscribed;user-id=30 "
    ":tmi.twitch.tv USERNOTICE #chan :great stream"
)

JOIN = ":someone!someone@someone.tmi.twitch.tv JOIN #chan"

PART = ":someone!someone@someone.tmi.twitch.tv PART #chan"

CAP_ACK = ":tmi.twitch.tv CAP * ACK :twitch.tv/commands twitch.tv/tags"


def privmsg(
    message: str,
    *,
    user: str = "foo",
    user_id: int = 20,
    room_id: int = 10,
    channel: str = "chan",
) -> str:
    return (
        f"@display-name={user.capitalize()};room-id={room_id};user-id={user_id} "
        f":{user}!{user}@{user}.tmi.twitch.tv PRIVMSG #{channel} :{message}"
    )
