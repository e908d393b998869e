"""Restaurant news: post list and a reader pane."""

from __future__ import annotations

from textual import work
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import Screen
from textual.widgets import Header, OptionList, Static
from textual.widgets.option_list import Option

from storefront.api import ApiClient, ApiError, NotFoundError
from storefront.models import BlogPost
from storefront.rendering import format_blog_post


class BlogScreen(Screen[None]):
    BINDINGS = [("escape", "close", "Back to menu")]

    CSS = """
    #blog-layout {
        height: 1fr;
        border: round $primary;
        padding: 1;
    }

    #blog-list {
        width: 1fr;
        border: tall $surface;
    }

    #blog-reader {
        width: 2fr;
        padding: 0 1;
    }
    """

    def __init__(self, client: ApiClient) -> None:
        super().__init__()
        self.client = client
        self.posts: list[BlogPost] = []

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="blog-layout"):
            yield OptionList(id="blog-list")
            with VerticalScroll(id="blog-reader"):
                yield Static("Loading posts...", id="blog-post")

    def on_mount(self) -> None:
        self._load_posts()

    def action_close(self) -> None:
        self.app.pop_screen()

    @work(thread=True, exclusive=True, group="blog-list")
    def _load_posts(self) -> None:
        try:
            posts = self.client.get_blogs()
        except ApiError as exc:
            self.app.call_from_thread(self._show_message, f"News unavailable: {exc.message}")
            return
        self.app.call_from_thread(self._posts_loaded, posts)

    def _posts_loaded(self, posts: list[BlogPost]) -> None:
        # Slugs identify posts; the first one wins.
        seen: set[str] = set()
        self.posts = []
        for post in posts:
            if post.slug and post.slug not in seen:
                seen.add(post.slug)
                self.posts.append(post)
        options = self.query_one("#blog-list", OptionList)
        options.clear_options()
        options.add_options([Option(post.title or post.slug, id=post.slug) for post in self.posts])
        self._show_message("Choose a post" if self.posts else "No posts yet")

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option.id:
            self._show_message("Loading...")
            self._load_post(event.option.id)

    @work(thread=True, exclusive=True, group="blog-post")
    def _load_post(self, slug: str) -> None:
        try:
            post = self.client.get_blog(slug)
        except NotFoundError:
            self.app.call_from_thread(self._show_message, "Post not found")
            return
        except ApiError as exc:
            self.app.call_from_thread(self._show_message, exc.message)
            return
        self.app.call_from_thread(self._show_post, post)

    def _show_post(self, post: BlogPost) -> None:
        self.query_one("#blog-post", Static).update(format_blog_post(post))

    def _show_message(self, message: str) -> None:
        self.query_one("#blog-post", Static).update(message)
