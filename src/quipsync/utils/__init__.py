"""
Utility modules for QuipSync.

Modules:
- completion: Structured completion engine (parse, validate, repair loop)
- prompt_builder: Script and style-analysis prompts
- cache: Script cache backends and cache keys
- extraction: Article text extraction for story URLs
- llm: Completion provider interface
- llm_constants: Token, temperature, retry and word-count settings
- errors: Error taxonomy and Flask error handlers

Import from the submodules directly; models depends on llm_constants, so this
package stays import-free.
"""
