import io
import threading

import pytest

from ustask.console import Console


def _console(text=""):
    out = io.StringIO()
    return Console(out, io.StringIO(text)), out


def test_put_str_writes_text():
    console, out = _console()
    console.put_str("hello")
    console.put_str(" world")
    assert out.getvalue() == "hello world"


def test_put_int_writes_decimal():
    console, out = _console()
    console.put_int(-42)
    console.put_int(7)
    assert out.getvalue() == "-427"


def test_put_int_rejects_non_integer():
    console, _ = _console()
    with pytest.raises(TypeError):
        console.put_int("5")


def test_put_char_writes_one_character():
    console, out = _console()
    console.put_char("x")
    assert out.getvalue() == "x"


def test_put_char_rejects_longer_string():
    console, _ = _console()
    with pytest.raises(ValueError):
        console.put_char("xy")


def test_put_str_rejects_bytes():
    console, _ = _console()
    with pytest.raises(TypeError):
        console.put_str(b"raw")


def test_get_str_reads_in_chunks():
    console, _ = _console("abcdef")
    assert console.get_str(3) == "abc"
    assert console.get_str(3) == "def"
    assert console.get_str(3) == ""


def test_get_str_rejects_negative_size():
    console, _ = _console("abc")
    with pytest.raises(ValueError):
        console.get_str(-1)


def test_concurrent_writes_stay_whole():
    console, out = _console()
    threads = [
        threading.Thread(target=console.put_str, args=("ab\n",)) for _ in range(20)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert out.getvalue().splitlines() == ["ab"] * 20