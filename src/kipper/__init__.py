"""
kipper is a small set of async stages for a static-site asset pipeline:
template rendering, Sass compilation with unused-rule purging and vendor
prefixing, script transpilation and minification, and HTML formatting.
"""
from .core import ConfigurationError, Stage, StageUnavailableException
from .dependencies import Dependency, ExecDependency, PipDependency
from .markup import MarkupFormatStage, format_html, format_markup
from .purge import PrefixResult, PurgeResult, RawContent, prefix_stylesheet, purge_stylesheets
from .scripts import ScriptMinifyStage, ScriptTranspileStage, minify_script, transpile_script
from .styles import StyleCompileStage, compile_and_purge_styles
from .templates import RenderContext, TemplateRenderStage, render_template
from .viewer import ViewerLaunchError, open_in_app
