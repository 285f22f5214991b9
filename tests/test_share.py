from datetime import timedelta
from unittest.mock import patch

from conftest import T0, make_record


def test_show_share_code_prints_code_and_duration(capsys):
    from ui.share import show_share_code

    show_share_code(make_record("K7Q2M"), "5 hours")

    out = capsys.readouterr().out
    assert "K7Q2M" in out
    assert "5 hours" in out


def test_manage_extend_updates_expiration(registry, store, clock, capsys):
    from ui.share import manage_flow

    store.items["ABC12"] = make_record("ABC12", expires_in=timedelta(hours=1))
    clock.advance(minutes=5)

    with patch("ui.share.Prompt.ask", side_effect=["extend", "abc12", "1w"]):
        manage_flow(registry)

    assert store.items["ABC12"].expires_at == T0 + timedelta(minutes=5, weeks=1)
    assert "updated" in capsys.readouterr().out.lower()


def test_manage_extend_expired_code(registry, store, clock, capsys):
    from ui.share import manage_flow

    store.items["ABC12"] = make_record("ABC12", expires_in=timedelta(hours=1))
    clock.advance(hours=2)

    with patch("ui.share.Prompt.ask", side_effect=["extend", "ABC12", "1w"]):
        manage_flow(registry)

    assert "not found" in capsys.readouterr().out.lower()
    assert store.items["ABC12"].expires_at == T0 + timedelta(hours=1)


def test_manage_revoke_valid_code(registry, store, capsys):
    from ui.share import manage_flow

    store.items["ABC12"] = make_record("ABC12")

    with patch("ui.share.Prompt.ask", side_effect=["revoke", "ABC12"]):
        manage_flow(registry)

    assert "ABC12" not in store.items
    assert "revoked" in capsys.readouterr().out.lower()


def test_manage_revoke_unknown_code(registry, capsys):
    from ui.share import manage_flow

    with patch("ui.share.Prompt.ask", side_effect=["revoke", "XXXXX"]):
        manage_flow(registry)

    assert "not found" in capsys.readouterr().out.lower()


def test_manage_revoke_store_failure(registry, store, capsys):
    from ui.share import manage_flow

    store.items["ABC12"] = make_record("ABC12")
    store.fail_delete = True

    with patch("ui.share.Prompt.ask", side_effect=["revoke", "ABC12"]):
        manage_flow(registry)

    assert "failed to revoke" in capsys.readouterr().out.lower()


def test_main_menu_dispatches_until_exit(capsys):
    from ui.menu import show_main_menu

    client = type("Client", (), {"bucket": "test-bucket"})()
    with patch("ui.menu.Prompt.ask", side_effect=["3", "4"]), \
         patch("ui.menu.manage_flow") as manage:
        show_main_menu(client, registry="registry")

    manage.assert_called_once_with("registry")
    assert "goodbye" in capsys.readouterr().out.lower()
