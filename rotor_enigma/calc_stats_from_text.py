import collections
import logging
import math
import os

import dill
import tqdm

import enigma

logger = logging.getLogger(__name__)

GROUP_NAMES = {2: 'diads', 3: 'triads', 4: 'quads'}


def collect_texts(source_dir: str) -> list:
    files = sorted(os.path.join(source_dir, f) for f in os.listdir(source_dir) if
                   os.path.isfile(os.path.join(source_dir, f)) and f.endswith('.txt'))
    texts = []
    for f in files:
        logger.info('reading %s', f)
        with open(f, 'r') as file_:
            texts.append(file_.read())
    return texts


def calc_group_stats(texts, charset: str = enigma.DEFAULT_CHARSET, disable_tqdm=True) -> dict:
    """
    log10 frequency of every group of 2, 3 and 4 consecutive characters.
    Characters outside the charset are dropped, lower case is folded into the charset's case.
    """
    counts = {length: collections.defaultdict(float) for length in GROUP_NAMES}
    fold = str.upper if charset.isupper() else str.lower

    n_groups = {length: 0 for length in GROUP_NAMES}
    for text in tqdm.tqdm(texts, disable=disable_tqdm):
        text = ''.join(c for c in fold(text) if c in charset)
        for length, di in counts.items():
            for i in range(len(text) - length + 1):
                di[text[i:i + length]] += 1
                n_groups[length] += 1

    res = {'charset': charset}
    for length, di in counts.items():
        res[GROUP_NAMES[length]] = {key: math.log10(count / n_groups[length]) for key, count in di.items()}
    return res


def save_stats(stats: dict, path: str):
    with open(path, 'wb') as out_file:
        dill.dump(stats, out_file)


def load_stats(path: str) -> dict:
    with open(path, 'rb') as read_file:
        return dill.load(read_file)


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    save_stats(calc_group_stats(collect_texts('./sample_texts'), disable_tqdm=False), 'language_stats.dill')
