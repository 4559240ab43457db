"""Japa (chanting) bead and round counting."""
from dataclasses import dataclass

BEADS_PER_ROUND = 108


@dataclass
class JapaCounter:
    beads: int = 0
    rounds: int = 0

    def increment(self) -> bool:
        """Count one mantra. Returns True when it completes a round."""
        if self.beads >= BEADS_PER_ROUND - 1:
            self.rounds += 1
            self.beads = 0
            return True
        self.beads += 1
        return False

    def adjust_rounds(self, delta: int) -> int:
        self.rounds = max(0, self.rounds + delta)
        return self.rounds

    def progress(self, goal: int) -> int:
        if goal <= 0:
            return 100
        return min(100, round(self.rounds / goal * 100))
