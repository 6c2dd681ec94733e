"""Daily Intent Engine: a chat-driven personal task tracker."""
