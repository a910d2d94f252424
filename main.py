from rich import print

from argopt import *


def boo(name, parser):
    print("[bold]--- %s ---[/bold]" % name)
    print(parser)


if __name__ == '__main__':
    parser = Parser("Usage: main.py [--foo] [--bar STR] [boo ...]", "1.2.3")
    parser.flag("foo f")
    parser.string("bar b", "fallback")

    command = parser.command("boo", "Usage: main.py boo [--baz N]", callback=boo)
    command.integer("baz z", 1)

    print(invoke(parser))
