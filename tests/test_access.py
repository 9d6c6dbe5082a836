from __future__ import annotations

from opsdash.access import AccessContext, AccessState


class TestAccessContext:
    def test_starts_unauthenticated(self) -> None:
        ctx = AccessContext(password="secret")
        assert ctx.state is AccessState.UNAUTHENTICATED
        assert not ctx.is_authenticated

    def test_wrong_password_keeps_gate_closed(self) -> None:
        ctx = AccessContext(password="secret")
        assert ctx.authenticate("guess") is False
        assert not ctx.is_authenticated

    def test_correct_password_opens_gate(self) -> None:
        ctx = AccessContext(password="secret")
        assert ctx.authenticate("secret") is True
        assert ctx.is_authenticated

    def test_end_session_closes_gate(self) -> None:
        ctx = AccessContext(password="secret")
        ctx.authenticate("secret")
        ctx.end_session()
        assert ctx.state is AccessState.UNAUTHENTICATED
        assert not ctx.is_authenticated

    def test_no_password_means_open(self) -> None:
        ctx = AccessContext()
        assert not ctx.required
        assert ctx.is_authenticated
        assert ctx.authenticate("") is True
