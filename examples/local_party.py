"""Play one round in-process with four simulated clients.

Every player runs a RoomClient against a shared InMemoryRoomStore, exactly as
separate devices would against a shared backend. The host's client reveals the
results on its own once the last vote is in.

Running the Example:
    python examples/local_party.py
"""

from __future__ import annotations

import asyncio

from impostor_py import GameService, InMemoryRoomStore, RoomClient, describe_phase
from impostor_py.core.logging import configure_logging
from impostor_py.core.settings import ImpostorSettings


async def main() -> None:
    configure_logging(debug=False)
    game = GameService(InMemoryRoomStore(), settings=ImpostorSettings(vote_settle_delay_seconds=0.2))

    seat = await game.rooms.create_room("Ana", avatar=1)
    ids = [seat.player_id]
    for name in ("Luis", "Marta", "Pablo"):
        ids.append((await game.rooms.join_room(seat.room_code, name)).player_id)

    clients = [RoomClient(game, seat.room_code, player_id) for player_id in ids]
    for client in clients:
        await client.start()

    room = await game.session.start_game(seat.room_code, ids[0])
    for player in room.players:
        print(f"{player.name:>6}: {player.word}")
    print(f"Starting player: {room.game_state.starting_player} ({room.game_state.direction})")

    await game.voting.initiate_voting(seat.room_code, ids[0])
    suspect = next(p.id for p in room.players if p.is_impostor)
    for voter in ids:
        target = suspect if voter != suspect else next(i for i in ids if i != suspect)
        await game.voting.cast_vote(seat.room_code, voter, target)

    await asyncio.sleep(0.5)
    room = await game.rooms.get_room(seat.room_code)
    view = describe_phase(room)
    print(f"Phase: {view.phase}, result: {view.result}")

    for client in clients:
        await client.close()


if __name__ == "__main__":
    asyncio.run(main())
