import logging
from pathlib import Path

from jinja2 import DictLoader, Environment, TemplateError, select_autoescape

logger = logging.getLogger(__name__)

BASE_TEMPLATE = 'base.html'
PAGE_TEMPLATE = 'page.html'


class TemplateResolver:
    """
    Renders instance pages composed of two files.

    ``<web_root>/<instance>/templates/base.html`` is the wrapper and declares
    the ``{% block %}`` slots; ``<web_root>/<instance>/page/<page>.html``
    fills them. Both files are read and parsed on every call.
    """
    def __init__(self, web_root: Path):
        self.web_root = Path(web_root)

    def page_paths(self, instance: str, page: str) -> tuple[Path, Path]:
        instance_root = self.web_root / instance
        return (instance_root / 'page' / f'{page}.html',
                instance_root / 'templates' / BASE_TEMPLATE)

    def render(self, instance: str, page: str) -> tuple[bytes, bool]:
        """
        Render ``page`` for ``instance`` inside the shared base template.
        :return: (body, ok); ok is False when either file is missing or broken
        """
        page_path, base_path = self.page_paths(instance, page)
        try:
            page_source = page_path.read_text(encoding='utf-8')
            base_source = base_path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug('Template files for %s/%s not loaded: %s', instance, page, exc)
            return b'', False

        env = Environment(
            loader=DictLoader({
                BASE_TEMPLATE: base_source,
                # page files only carry blocks, the base template is the entry point
                PAGE_TEMPLATE: '{% extends "' + BASE_TEMPLATE + '" %}' + page_source,
            }),
            autoescape=select_autoescape(),
            cache_size=0,
        )
        try:
            body = env.get_template(PAGE_TEMPLATE).render(data='data')
        except TemplateError as exc:
            logger.debug('Template %s/%s failed to render: %s', instance, page, exc)
            return b'', False

        return body.encode('utf-8'), True
