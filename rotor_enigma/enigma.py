import logging
import string

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = string.ascii_uppercase
DEFAULT_KEY = 'AAA'
DEFAULT_PLUGBOARD_SEED = 100
# fast, medium, slow
DEFAULT_ROTOR_SEEDS = (10, 20, 30)
DEFAULT_REFLECTOR_SEED = 200


class InvalidSymbol(ValueError):
    """A character (or position) that is not part of the cipher alphabet."""


class InvalidKey(ValueError):
    """A rotor key that does not name exactly one valid symbol per rotor."""


def gen_permutor_lists(n_elements: int, seed: int):
    rng = np.random.default_rng(seed)
    perm_forward = rng.permutation(n_elements).tolist()
    perm_backward = invert_permutation(perm_forward)

    return perm_forward, perm_backward


def gen_swap_list(n_elements: int, n_swaps: int, seed):
    assert n_swaps <= n_elements // 2
    elements = list(range(n_elements))
    rng = np.random.default_rng(seed)

    # random input jacks of the board
    firsts = rng.choice(elements, size=n_swaps, replace=False).tolist()
    # remove them from the list
    for el in firsts:
        elements.remove(el)

    # random output jacks
    seconds = rng.choice(elements, size=n_swaps, replace=False).tolist()

    # ports that are not connected keep mapping onto themselves
    swaps = list(range(n_elements))
    for first, second in zip(firsts, seconds):
        swaps[first] = second
        swaps[second] = first
    return swaps


def invert_permutation(perm) -> list:
    inverse = [0] * len(perm)
    for idx, el in enumerate(perm):
        inverse[el] = idx
    return inverse


def check_permutation(perm, n_positions: int):
    if sorted(perm) != list(range(n_positions)):
        raise ValueError(f'wiring {list(perm)} is not a permutation of 0..{n_positions - 1}')


class AlphabetCodec:
    def __init__(self, charset: str = DEFAULT_CHARSET):
        if len(set(charset)) != len(charset):
            raise ValueError(f'charset {charset!r} contains duplicate symbols')
        self.charset = charset
        self.n_positions = len(charset)

        self.char_to_number_map = dict()
        for i, char in enumerate(self.charset):
            self.char_to_number_map[char] = i

    def to_position(self, symbol: str) -> int:
        try:
            return self.char_to_number_map[symbol]
        except KeyError:
            raise InvalidSymbol(f'symbol {symbol!r} is not in the charset {self.charset!r}') from None

    def to_symbol(self, position: int) -> str:
        if not 0 <= position < self.n_positions:
            raise InvalidSymbol(f'position {position} is outside 0..{self.n_positions - 1}')
        return self.charset[position]

    def encode(self, text) -> list:
        return [self.to_position(char) for char in text]

    def decode(self, positions) -> str:
        return ''.join(self.to_symbol(pos) for pos in positions)


class Plugboard:
    def __init__(self, n_positions: int = 26, seed=None):
        self.n_positions = n_positions
        self.seed = seed
        if seed is None:
            wiring = list(range(n_positions))
        else:
            wiring, _ = gen_permutor_lists(n_positions, seed)
        self._set_wiring(wiring)

    def _set_wiring(self, wiring):
        check_permutation(wiring, self.n_positions)
        self.wiring = tuple(wiring)
        # the return path is a lookup, not a scan
        self.inverse = tuple(invert_permutation(self.wiring))

    @classmethod
    def from_swaps(cls, n_positions: int, n_swaps: int, seed: int):
        plugboard = cls(n_positions=n_positions)
        plugboard.seed = seed
        plugboard._set_wiring(gen_swap_list(n_positions, n_swaps, seed))
        return plugboard

    @classmethod
    def from_pairs(cls, pairs, charset: str = DEFAULT_CHARSET):
        """
        Cable the board like the historical machine, e.g. ``["AB", "CD"]``
        swaps A with B and C with D. All other letters are left alone.
        """
        codec = AlphabetCodec(charset)
        wiring = list(range(codec.n_positions))
        used = set()
        for pair in pairs:
            if len(pair) != 2:
                raise ValueError(f'pair {pair!r} must consist of exactly two symbols')
            first, second = codec.encode(pair)
            if first == second:
                raise ValueError(f'pair {pair!r} connects a symbol to itself')
            if first in used or second in used:
                raise ValueError(f'pair {pair!r} reuses an already connected symbol')
            wiring[first], wiring[second] = second, first
            used.update((first, second))

        plugboard = cls(n_positions=codec.n_positions)
        plugboard._set_wiring(wiring)
        return plugboard

    def forward(self, input_: int) -> int:
        return self.wiring[input_]

    def backward(self, input_: int) -> int:
        return self.inverse[input_]

    def key_array(self) -> list:
        return list(self.wiring)


class Rotor:
    def __init__(self, n_positions: int = 26, seed: int = 0, carries: bool = False):
        self.seed = seed
        self.n_positions = n_positions
        # a carrying rotor turns the next rotor of its bank after each full revolution
        self.carries = carries

        # number of positional rotations relative to the wiring at rest
        self.offset = 0
        self.revolution_count = 0

        rng = np.random.default_rng(seed)
        self.wiring = rng.permutation(self.n_positions)
        self.inverse = np.argsort(self.wiring)
        self.wiring.setflags(write=False)
        self.inverse.setflags(write=False)

    @property
    def front(self) -> int:
        """The value at the first slot of the ring, i.e. the letter shown in the window."""
        return int(self.wiring[-self.offset % self.n_positions])

    def align_to(self, target_front: int):
        if not 0 <= target_front < self.n_positions:
            raise InvalidSymbol(f'rotor cannot be aligned to {target_front}: outside 0..{self.n_positions - 1}')
        self.offset = -int(self.inverse[target_front]) % self.n_positions

    def rotate_return_carryover(self, n_steps: int = 1) -> int:
        self.offset = (self.offset + n_steps) % self.n_positions
        if not self.carries:
            return 0
        div, mod = divmod(self.revolution_count + n_steps, self.n_positions)
        self.revolution_count = mod
        return div

    def rotate_once(self) -> int:
        return self.rotate_return_carryover(1)

    def forward(self, input_: int) -> int:
        return int(self.wiring[(input_ - self.offset) % self.n_positions])

    def backward(self, input_: int) -> int:
        return int((self.inverse[input_] + self.offset) % self.n_positions)

    def key_array(self) -> list:
        return np.roll(self.wiring, self.offset).tolist()


class Reflector:
    def __init__(self, n_positions: int = 26, seed=None):
        if n_positions % 2:
            raise ValueError('a reflector needs an even number of positions to pair them all up')
        self.n_positions = n_positions
        self.seed = seed

        wiring = list(range(n_positions))
        if seed is None:
            pairing = list(range(n_positions))
        else:
            rng = np.random.default_rng(seed)
            pairing = rng.permutation(n_positions).tolist()
        # pair the first half of the pairing with the mirrored second half
        for i in range(n_positions // 2):
            first, second = pairing[i], pairing[n_positions - 1 - i]
            wiring[first], wiring[second] = wiring[second], wiring[first]
        self.wiring = tuple(wiring)

    def reflect(self, input_: int) -> int:
        return self.wiring[input_]

    def key_array(self) -> list:
        return list(self.wiring)


class RotorBank:
    """
    Rotors ordered from fast to slow. The fast rotor turns once per symbol and every
    carrying rotor passes a full revolution on to the rotor after it.
    """

    def __init__(self, rotors):
        if not rotors:
            raise ValueError('a rotor bank needs at least one rotor')
        rotor_lengths = np.array([rot.n_positions for rot in rotors])
        if not np.all(rotor_lengths == rotor_lengths[0]):
            raise ValueError('rotors of one bank must have the same number of positions')
        self.rotors = list(rotors)
        self.n_positions = int(rotor_lengths[0])
        # the bank owns the carry chain, the slowest rotor has nothing to carry into
        for idx, rot in enumerate(self.rotors):
            rot.carries = idx < len(self.rotors) - 1

    @classmethod
    def from_seeds(cls, seeds=DEFAULT_ROTOR_SEEDS, n_positions: int = 26):
        return cls([Rotor(n_positions=n_positions, seed=seed) for seed in seeds])

    def __len__(self):
        return len(self.rotors)

    def set_key(self, positions):
        positions = list(positions)
        if len(positions) != len(self.rotors):
            raise InvalidKey(f'need {len(self.rotors)} key positions, got {len(positions)}')
        for pos in positions:
            if not 0 <= pos < self.n_positions:
                raise InvalidKey(f'key position {pos} is outside 0..{self.n_positions - 1}')

        for rot, pos in zip(self.rotors, positions):
            rot.align_to(pos)
            rot.revolution_count = 0

    def get_rotor_positions(self) -> list:
        return [rot.front for rot in self.rotors]

    def forward(self, input_: int) -> int:
        number = input_
        for rot in self.rotors:
            number = rot.forward(number)
        return number

    def backward(self, input_: int) -> int:
        number = input_
        for rot in reversed(self.rotors):
            number = rot.backward(number)
        return number

    def forward_trace(self, input_: int) -> list:
        trace = []
        number = input_
        for rot in self.rotors:
            number = rot.forward(number)
            trace.append(number)
        return trace

    def backward_trace(self, input_: int) -> list:
        trace = []
        number = input_
        for rot in reversed(self.rotors):
            number = rot.backward(number)
            trace.append(number)
        return trace

    def advance(self):
        # first rotor always gets rotated
        carry = 1
        for idx, rot in enumerate(self.rotors):
            if not carry:
                break
            if idx > 0:
                logger.debug('rotor %d completed a revolution, turning rotor %d', idx - 1, idx)
            carry = rot.rotate_return_carryover(carry)


class Enigma:
    def __init__(self, rotors, plugboard: Plugboard, reflector: Reflector, charset: str = DEFAULT_CHARSET):
        self.codec = AlphabetCodec(charset)
        self.charset = charset
        n_chars = self.codec.n_positions

        if not isinstance(rotors, RotorBank):
            rotors = RotorBank(rotors)
        if not rotors.n_positions == n_chars:
            raise ValueError('rotors do not have same number of positions as the chosen character set')
        self.rotor_bank = rotors

        if not plugboard.n_positions == n_chars:
            raise ValueError('plug board does not have the same number of positions as the character set')
        self.plug_board = plugboard

        if not reflector.n_positions == n_chars:
            raise ValueError('reflector does not have the same number of positions as the character set')
        self.reflector = reflector

    @classmethod
    def default(cls, key: str = DEFAULT_KEY):
        n_chars = len(DEFAULT_CHARSET)
        machine = cls(RotorBank.from_seeds(DEFAULT_ROTOR_SEEDS, n_positions=n_chars),
                      Plugboard(n_positions=n_chars, seed=DEFAULT_PLUGBOARD_SEED),
                      Reflector(n_positions=n_chars, seed=DEFAULT_REFLECTOR_SEED))
        machine.set_key(key)
        return machine

    def set_key(self, key: str):
        if len(key) != len(self.rotor_bank):
            raise InvalidKey(f'key {key!r} must consist of exactly {len(self.rotor_bank)} symbols')
        try:
            positions = self.codec.encode(key)
        except InvalidSymbol as err:
            raise InvalidKey(f'key {key!r} contains a symbol outside the charset') from err
        self.rotor_bank.set_key(positions)
        logger.debug('rotor key set to %s', key)

    def set_rotor_positions(self, positions):
        self.rotor_bank.set_key(positions)

    def get_rotor_positions(self) -> list:
        return self.rotor_bank.get_rotor_positions()

    def _check_position(self, input_: int):
        if not 0 <= input_ < self.codec.n_positions:
            raise InvalidSymbol(f'position {input_} is outside 0..{self.codec.n_positions - 1}')

    def encipher_symbol(self, input_: int) -> int:
        self._check_position(input_)
        number = self.plug_board.forward(input_)
        number = self.rotor_bank.forward(number)
        number = self.reflector.reflect(number)
        number = self.rotor_bank.backward(number)
        number = self.plug_board.backward(number)
        # the rotors turn once the circuit for this symbol is done
        self.rotor_bank.advance()
        return number

    def trace_symbol(self, input_: int) -> list:
        """
        Same as encipher_symbol, but returns every intermediate position:
        input, plugboard, each rotor forward, reflector, each rotor backward, plugboard.
        """
        self._check_position(input_)
        trace = [input_, self.plug_board.forward(input_)]
        trace += self.rotor_bank.forward_trace(trace[-1])
        trace.append(self.reflector.reflect(trace[-1]))
        trace += self.rotor_bank.backward_trace(trace[-1])
        trace.append(self.plug_board.backward(trace[-1]))
        self.rotor_bank.advance()
        return trace

    def encipher_text(self, symbols) -> list:
        # map everything up front so a bad symbol leaves the rotors untouched
        input_ints = self.codec.encode(symbols)
        return [self.encipher_symbol(input_int) for input_int in input_ints]

    def encode_message(self, input_: str) -> str:
        return self.codec.decode(self.encipher_text(input_))

    def key_arrays(self) -> dict:
        arrays = {'Plugboard': self.plug_board.key_array()}
        for idx, rot in enumerate(self.rotor_bank.rotors):
            arrays[f'Ring{idx + 1}'] = rot.key_array()
        arrays['Reflector'] = self.reflector.key_array()
        return arrays
