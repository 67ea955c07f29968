import time
import random
import tqdm

import enigma


def time_encoding(n_messages: int = 3000, chars_per_message: int = 256, seed: int = 0, disable_tqdm=False) -> float:
    charset = enigma.DEFAULT_CHARSET
    encoder = enigma.Enigma.default()

    rnd = random.Random(seed)
    messages = [''.join(rnd.choices(charset, k=chars_per_message)) for _ in range(n_messages)]
    tick = time.time()
    for message in tqdm.tqdm(messages, disable=disable_tqdm):
        encoder.set_key(enigma.DEFAULT_KEY)
        encoder.encode_message(message)
    tock = time.time()

    return (tock - tick) / n_messages


if __name__ == '__main__':
    chars_per_message = 256
    avg_time = time_encoding(chars_per_message=chars_per_message)
    print(f'Average encoding time for message with {chars_per_message} characters: {avg_time:.2e} seconds')
