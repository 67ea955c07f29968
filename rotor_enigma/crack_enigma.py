import collections
import logging

import baseconvert
import numpy as np
import tqdm

import enigma

logger = logging.getLogger(__name__)


class MultiindexIiterator:
    """
    Iterate over every point of an n_dims grid in lexicographic order.
    E.g. for n_dims == 2 and n_val_per_dim == 3 the points are
    [0,0]
    [0,1]
    [0,2]
    [1,0]
    [1,1]
    [1,2]
    ....
    [2,2]
    """
    def __init__(self, n_dims, n_val_per_dim):
        self.n_dims = n_dims
        self.n_val_per_dim = n_val_per_dim
        self.lin_idx = 0

        self.len = self.n_val_per_dim ** self.n_dims

    def __len__(self):
        return self.len

    def __iter__(self):
        self.lin_idx = 0
        return self

    def __next__(self):
        if self.lin_idx < self.len:
            baseconverted = list(baseconvert.base(self.lin_idx, 10, self.n_val_per_dim))
            n_pad_zeros = self.n_dims - len(baseconverted)
            self.lin_idx += 1
            return n_pad_zeros * [0] + baseconverted
        else:
            raise StopIteration


class TextScorerBase:
    def score_text(self, text: str) -> float:
        raise NotImplementedError


class GroupLikelihoodScorer(TextScorerBase):
    def __init__(self, loglikelihooddict: dict, not_known_penalty_factor=2):
        """
        :param loglikelihooddict: log10 frequency of every letter group, all groups of the same length
        :param not_known_penalty_factor: If a group is encountered that is not in the loglikelihooddict,
        choose a penalty based on the least likely group and the additional penalty factor
        """
        if not loglikelihooddict:
            raise ValueError('need at least one group to score texts')
        least_likely = min(loglikelihooddict, key=lambda k: loglikelihooddict[k])
        self.lld = collections.defaultdict(lambda: loglikelihooddict[least_likely] * not_known_penalty_factor,
                                           loglikelihooddict)
        self.n_chars_group = len(least_likely)

    def score_text(self, text: str) -> float:
        n_groups = len(text) - self.n_chars_group + 1
        if n_groups < 1:
            return -np.inf
        score = 0.
        for i in range(n_groups):
            group = text[i:i + self.n_chars_group]
            score += self.lld[group]
        score /= n_groups
        return score


class CribScorer(TextScorerBase):
    """Fraction of a known plaintext fragment (the crib) that shows up at its expected place."""

    def __init__(self, crib: str, offset: int = 0):
        if not crib:
            raise ValueError('crib must not be empty')
        self.crib = crib
        self.offset = offset

    def score_text(self, text: str) -> float:
        window = text[self.offset:self.offset + len(self.crib)]
        n_same = sum(1 for c1, c2 in zip(window, self.crib) if c1 == c2)
        return n_same / len(self.crib)


def decode_message_key_search(encrypted_message: str, decoder_enigma: enigma.Enigma, scorer: TextScorerBase,
                              disable_tqdm=False):
    """
    Try every rotor key on a machine whose wiring is known and keep the one whose output scores best.
    The machine is left keyed to the best key.
    """
    n_chars = decoder_enigma.codec.n_positions
    # validate once instead of failing for every key
    decoder_enigma.codec.encode(encrypted_message)

    # go through all positions and get the score of the output text
    highscore = -np.inf
    best_pos = decoder_enigma.get_rotor_positions()

    positions = iter(MultiindexIiterator(len(decoder_enigma.rotor_bank), n_chars))
    for pos in tqdm.tqdm(positions, disable=disable_tqdm):
        decoder_enigma.set_rotor_positions(pos)
        decoder_try = decoder_enigma.encode_message(encrypted_message)
        score = scorer.score_text(decoder_try)
        if score > highscore:
            highscore = score
            best_pos = pos

    decoder_enigma.set_rotor_positions(best_pos)
    decoded_msg = decoder_enigma.encode_message(encrypted_message)
    decoder_enigma.set_rotor_positions(best_pos)
    logger.info('best key %s with score %.3f', decoder_enigma.codec.decode(best_pos), highscore)

    return decoded_msg, best_pos
