"""
Blogger Tools — Blog, post and label operations

Tools:
  list_blogs       — Blogs of the authenticated user (OAuth2)
  get_blog         — One blog by ID
  get_blog_by_url  — One blog by its public URL
  create_blog      — Always fails: the Blogger API cannot create blogs
  list_posts       — Recent posts of a blog
  search_posts     — Full-text post search
  get_post         — One post by ID
  create_post      — Publish a new post (OAuth2)
  update_post      — Change title / content / labels (OAuth2)
  delete_post      — Delete a post (OAuth2)
  list_labels      — Labels used by recent posts
  get_label        — One label by name
"""

from typing import Any, Dict, List, Optional

from blogger_mcp.blogger import BloggerError, BloggerService
from blogger_mcp.server.dispatcher import ToolError, ToolSuccess
from blogger_mcp.server.logger import get_logger
from blogger_mcp.server.registry import Operation

log = get_logger("tools.blogger")

BLOG_CREATION_UNSUPPORTED = (
    "Blog creation is not supported by the Blogger API. "
    "Please create a blog via the Blogger web interface."
)

_BLOG_ID = {"type": "string", "description": "Blog ID"}
_POST_ID = {"type": "string", "description": "Post ID"}
_MAX_RESULTS = {"type": "number", "minimum": 1, "description": "Maximum number of results to return"}


def _schema(properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    return {"type": "object", "properties": properties, "required": required}


def build_operations(service: Optional[BloggerService] = None) -> List[Operation]:
    """
    Bind every Blogger tool to `service`.

    With no service the catalog is still complete for listing; only
    calling a handler needs the service.

    Client failures (BloggerError) come back as ToolError so the caller sees
    the upstream message; anything else propagates to the dispatcher.
    """

    async def list_blogs(args: Dict) -> Any:
        try:
            blogs = await service.list_blogs()
        except BloggerError as exc:
            log.warning(f"Error fetching blogs: {exc}")
            return ToolError(f"Error fetching blogs: {exc}")
        return ToolSuccess({"blogs": blogs})

    async def get_blog(args: Dict) -> Any:
        try:
            blog = await service.get_blog(args["blogId"])
        except BloggerError as exc:
            log.warning(f"Error fetching blog {args['blogId']}: {exc}")
            return ToolError(f"Error fetching blog: {exc}")
        return ToolSuccess({"blog": blog})

    async def get_blog_by_url(args: Dict) -> Any:
        try:
            blog = await service.get_blog_by_url(args["url"])
        except BloggerError as exc:
            log.warning(f"Error fetching blog at {args['url']}: {exc}")
            return ToolError(f"Error fetching blog by URL: {exc}")
        return ToolSuccess({"blog": blog})

    async def create_blog(args: Dict) -> Any:
        return ToolError(BLOG_CREATION_UNSUPPORTED)

    async def list_posts(args: Dict) -> Any:
        try:
            posts = await service.list_posts(args["blogId"], args.get("maxResults"))
        except BloggerError as exc:
            log.warning(f"Error fetching posts for blog {args['blogId']}: {exc}")
            return ToolError(f"Error fetching posts: {exc}")
        return ToolSuccess({"posts": posts})

    async def search_posts(args: Dict) -> Any:
        try:
            posts = await service.search_posts(args["blogId"], args["query"], args.get("maxResults"))
        except BloggerError as exc:
            log.warning(f"Error searching posts in blog {args['blogId']}: {exc}")
            return ToolError(f"Error searching posts: {exc}")
        return ToolSuccess({"posts": posts})

    async def get_post(args: Dict) -> Any:
        try:
            post = await service.get_post(args["blogId"], args["postId"])
        except BloggerError as exc:
            log.warning(f"Error fetching post {args['postId']}: {exc}")
            return ToolError(f"Error fetching post: {exc}")
        return ToolSuccess({"post": post})

    async def create_post(args: Dict) -> Any:
        try:
            post = await service.create_post(
                args["blogId"], args["title"], args["content"], args.get("labels"),
            )
        except BloggerError as exc:
            log.warning(f"Error creating post in blog {args['blogId']}: {exc}")
            return ToolError(f"Error creating post: {exc}")
        return ToolSuccess({"post": post})

    async def update_post(args: Dict) -> Any:
        try:
            post = await service.update_post(
                args["blogId"],
                args["postId"],
                title=args.get("title"),
                content=args.get("content"),
                labels=args.get("labels"),
            )
        except BloggerError as exc:
            log.warning(f"Error updating post {args['postId']}: {exc}")
            return ToolError(f"Error updating post: {exc}")
        return ToolSuccess({"post": post})

    async def delete_post(args: Dict) -> Any:
        try:
            await service.delete_post(args["blogId"], args["postId"])
        except BloggerError as exc:
            log.warning(f"Error deleting post {args['postId']}: {exc}")
            return ToolError(f"Error deleting post: {exc}")
        return ToolSuccess({"success": True})

    async def list_labels(args: Dict) -> Any:
        try:
            labels = await service.list_labels(args["blogId"])
        except BloggerError as exc:
            log.warning(f"Error fetching labels for blog {args['blogId']}: {exc}")
            return ToolError(f"Error fetching labels: {exc}")
        return ToolSuccess({"labels": labels})

    async def get_label(args: Dict) -> Any:
        try:
            label = await service.get_label(args["blogId"], args["labelName"])
        except BloggerError as exc:
            log.warning(f"Error fetching label {args['labelName']}: {exc}")
            return ToolError(f"Error fetching label: {exc}")
        return ToolSuccess({"label": label})

    return [
        Operation(
            "list_blogs",
            "Lists all accessible blogs",
            _schema({}, []),
            list_blogs,
        ),
        Operation(
            "get_blog",
            "Retrieves details of a specific blog",
            _schema({"blogId": _BLOG_ID}, ["blogId"]),
            get_blog,
        ),
        Operation(
            "get_blog_by_url",
            "Retrieves a blog from its public URL",
            _schema({"url": {"type": "string", "description": "Blog URL"}}, ["url"]),
            get_blog_by_url,
        ),
        Operation(
            "create_blog",
            "Creates a new blog (not supported by the Blogger API)",
            _schema(
                {
                    "name": {"type": "string", "description": "Blog name"},
                    "description": {"type": "string", "description": "Blog description"},
                },
                ["name"],
            ),
            create_blog,
        ),
        Operation(
            "list_posts",
            "Lists all posts from a blog",
            _schema({"blogId": _BLOG_ID, "maxResults": _MAX_RESULTS}, ["blogId"]),
            list_posts,
        ),
        Operation(
            "search_posts",
            "Searches posts in a blog",
            _schema(
                {
                    "blogId": _BLOG_ID,
                    "query": {"type": "string", "description": "Search term"},
                    "maxResults": _MAX_RESULTS,
                },
                ["blogId", "query"],
            ),
            search_posts,
        ),
        Operation(
            "get_post",
            "Retrieves details of a specific post",
            _schema({"blogId": _BLOG_ID, "postId": _POST_ID}, ["blogId", "postId"]),
            get_post,
        ),
        Operation(
            "create_post",
            "Creates a new post in a blog",
            _schema(
                {
                    "blogId": _BLOG_ID,
                    "title": {"type": "string", "description": "Post title"},
                    "content": {"type": "string", "description": "Post content"},
                    "labels": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Labels to associate with the post",
                    },
                },
                ["blogId", "title", "content"],
            ),
            create_post,
        ),
        Operation(
            "update_post",
            "Updates an existing post",
            _schema(
                {
                    "blogId": _BLOG_ID,
                    "postId": _POST_ID,
                    "title": {"type": "string", "description": "New post title"},
                    "content": {"type": "string", "description": "New post content"},
                    "labels": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "New labels to associate with the post",
                    },
                },
                ["blogId", "postId"],
            ),
            update_post,
        ),
        Operation(
            "delete_post",
            "Deletes a post",
            _schema({"blogId": _BLOG_ID, "postId": _POST_ID}, ["blogId", "postId"]),
            delete_post,
        ),
        Operation(
            "list_labels",
            "Lists all labels from a blog",
            _schema({"blogId": _BLOG_ID}, ["blogId"]),
            list_labels,
        ),
        Operation(
            "get_label",
            "Retrieves details of a specific label",
            _schema(
                {"blogId": _BLOG_ID, "labelName": {"type": "string", "description": "Label name"}},
                ["blogId", "labelName"],
            ),
            get_label,
        ),
    ]
