"""
Test doubles shared by several test modules.
"""

from gp_evolution.random_source import RandomSource


class ScriptedRandom(RandomSource):
    """Random source that replays fixed values, cycling when exhausted."""

    def __init__(self, ints=(0,), doubles=(0.0,)):
        self.ints = list(ints)
        self.doubles = list(doubles)
        self._int_position = 0
        self._double_position = 0

    def next_int(self, bound=None):
        value = self.ints[self._int_position % len(self.ints)]
        self._int_position += 1
        return value % bound if bound else value

    def next_double(self):
        value = self.doubles[self._double_position % len(self.doubles)]
        self._double_position += 1
        return value

    def next_boolean(self):
        return self.next_double() < 0.5

    def set_seed(self, seed):
        self._int_position = self._double_position = 0
