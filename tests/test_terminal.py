"""
Terminal backend tests

Tests key decoding and frame conversion; nothing here needs a tty.
"""

from termdeck.lib.terminal import frame_texts, keys_decode
from termdeck.models.render import Cell, Frame, Style
from termdeck.models.session import NavEvent


class TestKeysDecode:
    """Test raw input decoding"""

    def test_mixed_input(self):
        """Letters and escape sequences decode in arrival order"""
        assert keys_decode("l\x1b[Cq") == [NavEvent.NEXT, NavEvent.NEXT, NavEvent.QUIT]

    def test_arrows(self):
        assert keys_decode("\x1b[D\x1b[B\x1b[A") == [
            NavEvent.PREVIOUS, NavEvent.SCROLL_DOWN, NavEvent.SCROLL_UP,
        ]

    def test_application_mode_arrows(self):
        """SS3 arrows (ESC O x) are bound like CSI arrows"""
        assert keys_decode("\x1bOC\x1bOD") == [NavEvent.NEXT, NavEvent.PREVIOUS]

    def test_page_keys(self):
        assert keys_decode("\x1b[6~\x1b[5~du") == [
            NavEvent.PAGE_DOWN, NavEvent.PAGE_UP, NavEvent.PAGE_DOWN, NavEvent.PAGE_UP,
        ]

    def test_letters(self):
        assert keys_decode("jkh ") == [
            NavEvent.SCROLL_DOWN, NavEvent.SCROLL_UP, NavEvent.PREVIOUS, NavEvent.NEXT,
        ]

    def test_lone_escape_quits(self):
        assert keys_decode("\x1b") == [NavEvent.QUIT]

    def test_ctrl_c_quits(self):
        assert keys_decode("\x03") == [NavEvent.QUIT]

    def test_unbound_keys_skipped(self):
        """Unknown keys and sequences produce nothing"""
        assert keys_decode("x\x1b[15~z") == []


class TestFrameTexts:
    """Test Frame to rich Text conversion"""

    def test_one_text_per_row(self):
        texts = frame_texts(Frame.blank(3, 2))
        assert [text.plain for text in texts] == ["   ", "   "]

    def test_styles_merged(self):
        """Runs of cells with one style become one span"""
        red, blue = Style(fg="#ff0000"), Style(fg="#0000ff")
        frame = Frame(4, 1, [[Cell("a", red), Cell("b", red), Cell("c", blue), Cell("d", blue)]])
        text = frame_texts(frame)[0]
        assert text.plain == "abcd"
        assert len(text.spans) == 2
