"""Example: Play a local audio file as a listening challenge."""

import asyncio
import sys
import tempfile
from pathlib import Path

from challenge_player import ChallengePlayer, PlayerConfig, Track
from challenge_player.backends.clock_backend import ClockEngine
from challenge_player.services.rewards import RewardLedger
from challenge_player.storage import JsonFileStorage


async def main(audio_path: str, state_dir: str) -> None:
    config = PlayerConfig(log_level="INFO")
    engine = ClockEngine(tick_interval=config.tick_interval_seconds)
    storage = JsonFileStorage(state_dir)
    ledger = RewardLedger()

    track = Track(
        id="local",
        audio_uri=audio_path,
        title=Path(audio_path).stem,
        artist="Local file",
        points=10,
    )
    # Seed the catalog so progress for this file is persisted
    storage.save(config.storage_key, {"challenges": [track.to_record()]})

    async with ChallengePlayer(engine, storage, ledger=ledger, config=config) as player:
        await player.load_challenge("local")
        if player.session.last_error:
            print(f"Error: {player.session.last_error}")
            return

        print(f"Playing {track.title} ({player.duration_text})...")
        while True:
            await asyncio.sleep(0.5)
            print(
                f"\r{player.elapsed_text} / {player.duration_text} "
                f"({player.progress_percent:.0f}%)",
                end="",
            )
            if not player.session.is_playing:
                break
        print()

        challenge = player.store.get("local")
        print(f"Completed: {challenge.completed}, points: {ledger.total_points}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python play_challenge.py <path_to_audio_file> [state_dir]")
        sys.exit(1)

    audio_path = sys.argv[1]
    if not Path(audio_path).exists():
        print(f"Error: File not found: {audio_path}")
        sys.exit(1)

    state_dir = sys.argv[2] if len(sys.argv) > 2 else tempfile.mkdtemp(prefix="challenges-")
    try:
        # Leaving main() through cancellation still shuts the player down
        asyncio.run(main(audio_path, state_dir))
    except KeyboardInterrupt:
        print("\nInterrupted, playback stopped")
