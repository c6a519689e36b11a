"""Tests for HookRegistry."""

from merged_comments.core.hooks import HookRegistry


class TestFilters:
    def test_apply_without_callbacks_returns_value(self):
        assert HookRegistry().apply_filters("widget_title", "Recent") == "Recent"

    def test_callbacks_chain_with_extra_args(self):
        hooks = HookRegistry()
        hooks.add_filter("widget_title", lambda title, instance, id_base: f"{title} ({id_base})")
        hooks.add_filter("widget_title", lambda title, instance, id_base: title.upper())

        assert hooks.apply_filters("widget_title", "Recent", {}, "w") == "RECENT (W)"

    def test_priority_orders_callbacks(self):
        hooks = HookRegistry()
        hooks.add_filter("f", lambda value: value + ["late"], priority=20)
        hooks.add_filter("f", lambda value: value + ["early"], priority=5)
        hooks.add_filter("f", lambda value: value + ["default"])

        assert hooks.apply_filters("f", []) == ["early", "default", "late"]

    def test_remove_filter(self):
        hooks = HookRegistry()

        def shout(value):
            return value.upper()

        hooks.add_filter("f", shout)
        assert hooks.has_filter("f", shout)
        assert hooks.remove_filter("f", shout) is True
        assert not hooks.has_filter("f")
        assert hooks.apply_filters("f", "x") == "x"

    def test_remove_unknown_filter_returns_false(self):
        assert HookRegistry().remove_filter("f", print) is False

    def test_remove_bound_method(self):
        class Plugin:
            def comments_clauses(self, clauses):
                return clauses + ["lang"]

        plugin = Plugin()
        hooks = HookRegistry()
        hooks.add_filter("comments_clauses", plugin.comments_clauses)

        assert hooks.remove_filter("comments_clauses", plugin.comments_clauses) is True
        assert hooks.apply_filters("comments_clauses", []) == []


class TestActions:
    def test_do_action_returns_results_and_counts(self):
        hooks = HookRegistry()
        hooks.add_action("wp_head", lambda: "<style></style>")

        assert hooks.do_action("wp_head") == ["<style></style>"]
        assert hooks.do_action("wp_head") == ["<style></style>"]
        assert hooks.did_action("wp_head") == 2
        assert hooks.did_action("wp") == 0

    def test_action_receives_args(self):
        hooks = HookRegistry()
        seen = []
        hooks.add_action("save", seen.append)
        hooks.do_action("save", 42)
        assert seen == [42]

    def test_remove_action(self):
        hooks = HookRegistry()
        callback = lambda: None  # noqa: E731
        hooks.add_action("wp", callback)
        assert hooks.remove_action("wp", callback)
        assert hooks.do_action("wp") == []
