from ng2react.ir.nodes import DependencyIR, DependencyKind
from ng2react.transformer.body_rewriter import BodyRewriter, RewriteContext


def _host_rewriter():
    element = DependencyIR("el", "ElementRef", DependencyKind.BUILTIN)
    context = RewriteContext(element_refs={"el": "hostRef"}, dependencies={"el": element})
    return BodyRewriter(context)


class TestElementAccess:
    def test_reads_are_optional(self):
        rewriter = _host_rewriter()
        assert rewriter.rewrite("const w = this.el.nativeElement.offsetWidth;") == \
            "const w = hostRef.current?.offsetWidth;"

    def test_assignment_targets_are_non_null(self):
        rewriter = _host_rewriter()
        assert rewriter.rewrite("this.el.nativeElement.style.color = 'red';") == \
            "hostRef.current!.style.color = 'red';"
        assert rewriter.rewrite("this.el.nativeElement.scrollTop += 10;") == \
            "hostRef.current!.scrollTop += 10;"

    def test_comparison_is_not_an_assignment(self):
        rewriter = _host_rewriter()
        assert rewriter.rewrite("if (this.el.nativeElement.id == 'x') {}") == \
            "if (hostRef.current?.id == 'x') {}"

    def test_view_child_assignment(self):
        rewriter = BodyRewriter(RewriteContext(refs={"canvas"}))
        assert rewriter.rewrite("this.canvas.nativeElement.width = 300;") == "canvas.current!.width = 300;"
        assert rewriter.rewrite("return this.canvas.nativeElement.height;") == \
            "return canvas.current?.height;"
