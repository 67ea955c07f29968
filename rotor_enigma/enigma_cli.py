import argparse
import logging
import sys

import enigma

logger = logging.getLogger(__name__)

DEFAULT_CLI_KEY = 'OOO'
TRANSITION_HEADER = '    Plg   Ri1   Ri2   Ri3   Ref   Ri3   Ri2   Ri1   Plg'


def normalize_key(key: str, n_rotors: int = 3, charset: str = enigma.DEFAULT_CHARSET) -> str:
    key = key.strip().upper()
    if len(key) != n_rotors or any(c not in charset for c in key):
        raise enigma.InvalidKey(f'"{key}" is invalid key! Input {n_rotors} characters like "{n_rotors * charset[0]}"')
    return key


def normalize_text(text: str, charset: str = enigma.DEFAULT_CHARSET) -> str:
    # spaces and line breaks are dropped, everything else has to be a letter
    text = ''.join(text.split()).upper()
    bad = sorted(set(c for c in text if c not in charset))
    if bad:
        raise enigma.InvalidSymbol(f'Arguments should be letters! Found {"".join(bad)!r}')
    return text


def read_text(path: str) -> str:
    with open(path, 'r', encoding='utf-8') as file_:
        return ''.join(line.replace(' ', '') for line in file_.read().splitlines())


def format_key_arrays(arrays: dict, charset: str = enigma.DEFAULT_CHARSET) -> str:
    label_width = max(len(label) for label in arrays)
    lines = [f'{"":{label_width}} [ {" ".join(charset)} ]',
             f'{"":{label_width}}   {" ".join(len(charset) * "|")}']
    for label, array in arrays.items():
        lines.append(f'{label:{label_width}} [ {" ".join(charset[el] for el in array)} ]')
    return '\n'.join(lines)


def format_transition(trace: list, charset: str = enigma.DEFAULT_CHARSET) -> str:
    return '  ' + ' --> '.join(charset[el] for el in trace)


def encipher_with_display(machine: enigma.Enigma, text: str, transitions=False, cycle_keys=False) -> str:
    if not (transitions or cycle_keys):
        return machine.encode_message(text)

    input_ints = machine.codec.encode(text)
    output = []
    if not cycle_keys:
        print('Code Conversion Process')
        print(TRANSITION_HEADER)
    for cycle, input_int in enumerate(input_ints, start=1):
        if cycle_keys:
            print(f'Key Array : {cycle} cycle')
            print(format_key_arrays(machine.key_arrays(), machine.charset))
            print()
            print('Code Conversion Process')
            print(TRANSITION_HEADER)
        trace = machine.trace_symbol(input_int)
        print(format_transition(trace, machine.charset))
        output.append(trace[-1])
    print()
    return machine.codec.decode(output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='enigma-sim',
        description='Encipher (or decipher, it is the same operation) text on a three rotor Enigma machine. '
                    'Spaces are dropped and only letters are accepted.')
    parser.add_argument('text', nargs='*', help='text to convert, ignored when --file is given')
    parser.add_argument('-s', '--key', default=DEFAULT_CLI_KEY,
                        help=f'rotor key, three letters like "ABC" (default: {DEFAULT_CLI_KEY})')
    parser.add_argument('-t', '--transitions', action='store_true', help='show the conversion process of every letter')
    parser.add_argument('-d', '--default-keys', action='store_true', help='show the key arrays of all parts once')
    parser.add_argument('-k', '--cycle-keys', action='store_true',
                        help='show the key arrays and conversion process for every letter')
    parser.add_argument('-f', '--file', help='read the text from this file')
    parser.add_argument('-o', '--output', help='write the result into this file')
    parser.add_argument('-v', '--verbose', action='store_true', help='log debug output')
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        key = normalize_key(args.key)
        raw_text = read_text(args.file) if args.file else ''.join(args.text)
        text = normalize_text(raw_text)
    except (enigma.InvalidKey, enigma.InvalidSymbol) as err:
        print(err, file=sys.stderr)
        return 1
    except OSError as err:
        print(f'File cannot open. > {args.file} ({err.strerror})', file=sys.stderr)
        return 1
    except UnicodeDecodeError:
        print(f'File is not UTF-8 text. > {args.file}', file=sys.stderr)
        return 1
    if not text:
        print('Nothing to convert. The option to show help is "-h".', file=sys.stderr)
        return 1

    machine = enigma.Enigma.default(key)
    logger.debug('converting %d letters with key %s', len(text), key)

    if args.default_keys:
        print('Default Key Array')
        print(format_key_arrays(machine.key_arrays(), machine.charset))
        print()
    cryptogram = encipher_with_display(machine, text, transitions=args.transitions, cycle_keys=args.cycle_keys)
    if args.output:
        try:
            with open(args.output, 'w', encoding='utf-8') as out_file:
                out_file.write(cryptogram + '\n')
        except OSError as err:
            print(f'File cannot write. > {args.output} ({err.strerror})', file=sys.stderr)
            return 1

    print('Argument Information')
    if args.file:
        print(f'  -Argument File -> {args.file}')
    else:
        print(f'  -Argument String -> {text}')
    print(f'  -Key Setting -> {key}')
    print()
    print('Conversion Result')
    if args.output:
        print(f'  -Encrypted File -> {args.output}')
    else:
        print(f'  -Encrypted String -> {cryptogram}')
    return 0


if __name__ == '__main__':
    sys.exit(main())
