from ng2react.errors import DiagnosticCode, Severity

USER_CARD = """
import { Component, EventEmitter, Input, OnInit, Output } from '@angular/core';
import { User } from './user';
import { UserService } from './user.service';

@Component({
  selector: 'app-user-card',
  template: '<div class="card" *ngIf="user" (click)="select()">{{ user.name }}</div>',
  styles: ['.card { padding: 8px; }'],
})
export class UserCardComponent implements OnInit {
  @Input() userId!: string;
  @Output() userSelected = new EventEmitter<string>();
  user: User | null = null;

  constructor(private userService: UserService) {}

  ngOnInit() {
    this.load();
  }

  async load() {
    this.user = await this.userService.getUser(this.userId);
  }

  select() {
    this.userSelected.emit(this.userId);
  }
}
"""

USER_SERVICE = """
import { Injectable } from '@angular/core';
import { BehaviorSubject } from 'rxjs';

@Injectable({ providedIn: 'root' })
export class UserService {
  private users = new BehaviorSubject<string[]>([]);
  count = 0;

  async getUser(id: string): Promise<string> {
    return id;
  }

  addUser(name: string) {
    this.users.next([...this.users.value, name]);
    this.count++;
  }
}
"""

USER_TYPES = """
export interface User {
  id: string;
  name: string;
}
"""

TRUNCATE_PIPE = """
import { Pipe, PipeTransform } from '@angular/core';

@Pipe({ name: 'truncate' })
export class TruncatePipe implements PipeTransform {
  transform(value: string, limit: number = 10): string {
    return value.length > limit ? value.slice(0, limit) : value;
  }
}
"""

TITLE = """
import { Component } from '@angular/core';

@Component({ selector: 'app-title', template: '<h1>{{ title | truncate:5 }}</h1>' })
export class TitleComponent {
  title = 'Hello world';
}
"""

LIST = """
import { Component } from '@angular/core';

@Component({ selector: 'app-list', template: '<ul><li *ngFor="let item of items">{{ item }}</li></ul>' })
export class ListComponent {
  items = ['a', 'b'];
}
"""

NAME_FORM = """
import { Component } from '@angular/core';

@Component({ selector: 'app-name-form', template: '<input [(ngModel)]="name">' })
export class NameFormComponent {
  name = '';
}
"""

HOME = """
import { Component } from '@angular/core';

@Component({ selector: 'app-home', template: '<h1>Home</h1>' })
export class HomeComponent {}
"""

ROUTES = """
import { Routes } from '@angular/router';
import { HomeComponent } from './home.component';

export const routes: Routes = [
  { path: '', component: HomeComponent },
  { path: 'old', redirectTo: 'home' },
  { path: '**', component: HomeComponent },
];
"""

APP_MODULE = """
import { NgModule } from '@angular/core';
import { UserCardComponent } from './user-card.component';
import { UserService } from './user.service';

@NgModule({
  declarations: [UserCardComponent],
  providers: [UserService],
})
export class AppModule {}
"""


def _scenario():
    return {
        "src/app/user-card.component.ts": USER_CARD,
        "src/app/user.service.ts": USER_SERVICE,
        "src/app/user.ts": USER_TYPES,
    }


class TestComponentGeneration:
    def test_props_state_and_effect(self, transpile):
        result = transpile(_scenario())
        text = result.files["components/UserCard.tsx"]
        assert "export interface UserCardProps {\n  userId: string;\n  onUserSelected: (userId: string) => void;\n}" in text
        assert "export default function UserCard({ userId, onUserSelected }: UserCardProps)" in text
        assert "const [user, setUser] = useState<User | null>(null);" in text
        assert text.count("useEffect(") == 1
        assert "// ngOnInit" in text
        assert "setUser(await userService.getUser(userId));" in text
        assert "onUserSelected(userId);" in text
        assert "this." not in text

    def test_template_becomes_jsx(self, transpile):
        text = transpile(_scenario()).files["components/UserCard.tsx"]
        assert ('return user ? <div className="card" onClick={() => select()}>{user.name}</div> : null;'
                in text)

    def test_service_dependency_becomes_a_hook_call(self, transpile):
        result = transpile(_scenario())
        text = result.files["components/UserCard.tsx"]
        assert "const userService = useUserService();" in text
        assert "import { useUserService } from '../services/useUserService';" in text
        assert not result.report.by_code(DiagnosticCode.UNRESOLVED_REFERENCE)

    def test_missing_service_is_reported_and_stubbed(self, transpile):
        result = transpile({"src/app/user-card.component.ts": USER_CARD})
        text = result.files["components/UserCard.tsx"]
        assert "const userService: any = undefined; // unresolved dependency: UserService" in text
        unresolved = result.report.by_code(DiagnosticCode.UNRESOLVED_REFERENCE)
        assert {d.unit for d in unresolved} == {"src/app/user-card.component.ts"}
        assert not result.has_errors

    def test_styles_are_emitted_and_imported(self, transpile):
        result = transpile(_scenario())
        assert ".card { padding: 8px; }" in result.files["styles/UserCard.css"]
        assert "import '../styles/UserCard.css';" in result.files["components/UserCard.tsx"]

    def test_key_fallback_is_reported_once(self, transpile):
        result = transpile({"src/app/list.component.ts": LIST})
        assert "<li key={index}>{item}</li>" in result.files["components/List.tsx"]
        assert len(result.report.by_code(DiagnosticCode.KEY_FALLBACK)) == 1

    def test_two_way_binding(self, transpile):
        text = transpile({"src/app/name-form.component.ts": NAME_FORM}).files["components/NameForm.tsx"]
        assert "const [name, setName] = useState('');" in text
        assert text.count("= useState") == 1
        assert "value={name}" in text
        assert "onChange={(event) => setName(event.target.value)}" in text

    def test_javascript_output(self, transpile):
        result = transpile(_scenario(), use_typescript=False)
        text = result.files["components/UserCard.jsx"]
        assert "interface" not in text
        assert ": string" not in text
        assert "const [user, setUser] = useState(null);" in text
        assert "services/useUserService.js" in result.files
        assert not any(path.startswith("types/") for path in result.files)

    def test_classic_react_runtime(self, transpile):
        text = transpile(_scenario(), react_version="16.14.0").files["components/UserCard.tsx"]
        assert text.startswith("import React")

    def test_smoke_tests_are_generated_on_request(self, transpile):
        assert "components/__tests__/UserCard.test.tsx" not in transpile(_scenario()).files
        result = transpile(_scenario(), generate_tests=True)
        test = result.files["components/__tests__/UserCard.test.tsx"]
        assert "describe('UserCard', () => {" in test
        assert "import UserCard from '../UserCard';" in test
        assert "const props = {" in test

    def test_preserved_structure(self, transpile):
        result = transpile(_scenario(), preserve_structure=True)
        text = result.files["components/src/app/UserCard.tsx"]
        assert "from '../../../services/src/app/useUserService';" in text


class TestServiceGeneration:
    def test_service_hook(self, transpile):
        text = transpile(_scenario()).files["services/useUserService.ts"]
        assert "export function useUserService() {" in text
        assert "const [users, setUsers] = useState<string[]>([]);" in text
        assert "const [count, setCount] = useState(0);" in text
        assert "const [getUserLoading, setGetUserLoading] = useState<boolean>(false);" in text
        assert "const [getUserError, setGetUserError] = useState<unknown>(null);" in text
        assert "setUsers([...users, name]);" in text
        assert "setCount(count + 1);" in text
        assert "catch (caught)" in text
        assert "setGetUserLoading(false);" in text
        assert "import { useState } from 'react';" in text

    def test_private_state_is_not_returned(self, transpile):
        text = transpile(_scenario()).files["services/useUserService.ts"]
        returned = text[text.index("return {"):]
        for name in ("count", "getUserLoading", "getUserError", "getUser", "addUser"):
            assert f"    {name},\n" in returned
        assert "    users,\n" not in returned

    def test_types_unit_is_carried_over(self, transpile):
        result = transpile(_scenario())
        assert "export interface User {" in result.files["types/user.ts"]


class TestPipeGeneration:
    def test_util_and_hook(self, transpile):
        result = transpile({"src/app/truncate.pipe.ts": TRUNCATE_PIPE})
        util = result.files["utils/truncate.ts"]
        assert "// 'truncate' pipe" in util
        assert "export function truncate(value: string, limit: number = 10): string {" in util
        hook = result.files["hooks/useTruncate.ts"]
        assert "export function useTruncate(value: string, limit: number = 10) {" in hook
        assert "return useMemo(() => truncate(value, limit), [value, limit]);" in hook

    def test_template_pipe_is_memoized(self, transpile):
        result = transpile({
            "src/app/truncate.pipe.ts": TRUNCATE_PIPE,
            "src/app/title.component.ts": TITLE,
        })
        text = result.files["components/Title.tsx"]
        assert "const truncateValue = useMemo(() => truncate(title, 5), [title]);" in text
        assert "import { truncate } from '../utils/truncate';" in text
        assert "{truncateValue}" in text

    def test_builtin_pipe_chain(self, transpile):
        text = transpile({"src/app/badge.component.ts": """
import { Component } from '@angular/core';

@Component({ selector: 'app-badge', template: '<span>{{ name | uppercase | slice:0:3 }}</span>' })
export class BadgeComponent {
  name = 'angular';
}
"""}).files["components/Badge.tsx"]
        assert "slice(uppercase(name), 0, 3)" in text
        assert "const sliceValue = useMemo(" in text


class TestModuleGeneration:
    def test_context_provider(self, transpile):
        sources = dict(_scenario())
        sources["src/app/app.module.ts"] = APP_MODULE
        text = transpile(sources).files["contexts/AppContext.tsx"]
        assert "export const AppContext = createContext<AppContextValue | null>(null);" in text
        assert "const userService = useUserService();" in text
        assert "const value = useMemo(() => ({ userService }), [userService]);" in text
        assert "throw new Error('useAppContext must be used within <AppProvider>');" in text
        assert "// Declarations: UserCard" in text

    def test_route_table(self, transpile):
        result = transpile({
            "src/app/home.component.ts": HOME,
            "src/app/app.routes.ts": ROUTES,
        })
        text = result.files["pages/AppRoutes.tsx"]
        assert "export const appRoutes: RouteObject[] = [" in text
        assert "  { index: true, element: <Home /> }," in text
        assert "  { path: 'old', element: <Navigate to={'/home'} replace /> }," in text
        assert "  { path: '*', element: <Home /> }," in text
        assert "export default function AppRoutes() {" in text
        assert "return useRoutes(appRoutes);" in text
        assert "import Home from '../components/Home';" in text

    def test_routing_only_module(self, transpile):
        result = transpile({
            "src/app/home.component.ts": HOME,
            "src/app/app-routing.module.ts": """
import { NgModule } from '@angular/core';
import { RouterModule } from '@angular/router';
import { HomeComponent } from './home.component';

@NgModule({
  imports: [RouterModule.forRoot([{ path: 'home', component: HomeComponent }])],
  exports: [RouterModule],
})
export class AppRoutingModule {}
""",
        })
        assert "pages/AppRoutes.tsx" in result.files
        assert not any(path.startswith("contexts/") for path in result.files)
        assert "{ path: 'home', element: <Home /> }," in result.files["pages/AppRoutes.tsx"]


class TestStubs:
    def test_broken_template_yields_a_stub_component(self, transpile):
        result = transpile({"src/app/bad.component.ts": """
import { Component, Input } from '@angular/core';

@Component({ selector: 'app-bad', template: '<div><span></div>' })
export class BadComponent {
  @Input() label = '';
}
"""})
        (diagnostic,) = result.report.by_code(DiagnosticCode.MALFORMED_TEMPLATE)
        assert diagnostic.severity == Severity.ERROR
        assert diagnostic.unit == "src/app/bad.component.ts"
        text = result.files["components/Bad.tsx"]
        assert "return null;" in text
        assert result.has_errors


HIGHLIGHT = """
import { Directive, ElementRef, HostListener, Input } from '@angular/core';

@Directive({ selector: '[appHighlight]' })
export class HighlightDirective {
  @Input() appHighlight = 'yellow';

  constructor(private el: ElementRef) {}

  @HostListener('mouseenter')
  onEnter() {
    this.el.nativeElement.style.backgroundColor = this.appHighlight;
  }
}
"""

UNLESS = """
import { Directive, Input, TemplateRef, ViewContainerRef } from '@angular/core';

@Directive({ selector: '[appUnless]' })
export class UnlessDirective {
  private hasView = false;

  constructor(private templateRef: TemplateRef<any>, private viewContainer: ViewContainerRef) {}

  @Input() set appUnless(condition: boolean) {
    if (!condition && !this.hasView) {
      this.viewContainer.createEmbeddedView(this.templateRef);
      this.hasView = true;
    } else if (condition && this.hasView) {
      this.viewContainer.clear();
      this.hasView = false;
    }
  }
}
"""


class TestDirectiveGeneration:
    def test_attribute_directive_becomes_a_hook(self, transpile):
        text = transpile({"src/app/highlight.directive.ts": HIGHLIGHT}).files["hooks/useHighlight.ts"]
        assert "export interface HighlightOptions {\n  appHighlight?: string;\n}" in text
        assert ("export function useHighlight(hostRef: RefObject<HTMLElement | null>, "
                "options: HighlightOptions = {}) {") in text
        assert "target.addEventListener('mouseenter', listener);" in text
        assert "this." not in text

    def test_structural_directive_becomes_a_render_prop_component(self, transpile):
        text = transpile({"src/app/unless.directive.ts": UNLESS}).files["components/Unless.tsx"]
        assert "  appUnless: boolean;" in text
        assert "  render: () => ReactNode;" in text
        assert "!appUnless" in text
        assert "hasView" not in text

    def test_host_element_assignment_is_non_null(self, transpile):
        text = transpile({"src/app/highlight.directive.ts": HIGHLIGHT}).files["hooks/useHighlight.ts"]
        assert "hostRef.current!.style.backgroundColor = appHighlight;" in text
        assert "current?.style.backgroundColor =" not in text

    def test_host_element_assignment_in_javascript(self, transpile):
        result = transpile({"src/app/highlight.directive.ts": HIGHLIGHT}, use_typescript=False)
        text = result.files["hooks/useHighlight.js"]
        assert "hostRef.current.style.backgroundColor = appHighlight;" in text

    def test_markup_directive_becomes_a_wrapper_component(self, transpile):
        text = transpile({"src/app/badge.directive.ts": BADGE}).files["components/withBadge.tsx"]
        assert "export default function withBadge(Wrapped: ElementType) {" in text
        assert "function WithBadge({ ...rest }: Record<string, unknown>) {" in text
        assert "return <Wrapped ref={hostRef} {...rest} />;" in text
        assert "document.createElement('span')" in text
        assert "None" not in text

    def test_stacked_directives_wrap_in_declaration_order(self, transpile):
        result = transpile({
            "src/app/badge.directive.ts": BADGE,
            "src/app/ribbon.directive.ts": RIBBON,
            "src/app/offer.component.ts": OFFER,
        })
        text = result.files["components/Offer.tsx"]
        assert "const SpanWithBadgeRibbon = withRibbon(withBadge('span'));" in text
        assert "<SpanWithBadgeRibbon>New</SpanWithBadgeRibbon>" in text
        assert "hostRef.current!.innerHTML +=" in result.files["components/withRibbon.tsx"]


BADGE = """
import { Directive, ElementRef, OnInit, Renderer2 } from '@angular/core';

@Directive({ selector: '[appBadge]' })
export class BadgeDirective implements OnInit {
  constructor(private el: ElementRef, private renderer: Renderer2) {}

  ngOnInit() {
    const badge = this.renderer.createElement('span');
    this.renderer.appendChild(this.el.nativeElement, badge);
  }
}
"""

RIBBON = """
import { Directive, ElementRef, OnInit } from '@angular/core';

@Directive({ selector: '[appRibbon]' })
export class RibbonDirective implements OnInit {
  constructor(private el: ElementRef) {}

  ngOnInit() {
    this.el.nativeElement.innerHTML += '<em>ribbon</em>';
  }
}
"""

OFFER = """
import { Component } from '@angular/core';

@Component({ selector: 'app-offer', template: '<span appBadge appRibbon>New</span>' })
export class OfferComponent {}
"""


STAMP_PIPE = """
import { Pipe, PipeTransform } from '@angular/core';

@Pipe({ name: 'stamp', pure: false })
export class StampPipe implements PipeTransform {
  transform(value: string): string {
    return value + Date.now();
  }
}
"""

CHART = """
import { Component, Input, OnChanges, SimpleChanges } from '@angular/core';

@Component({ selector: 'app-chart', template: '<p>{{ label }} {{ total }}</p>' })
export class ChartComponent implements OnChanges {
  @Input() data: number[] = [];
  @Input() label = '';
  total = 0;

  ngOnChanges(changes: SimpleChanges) {
    if (changes['data']) {
      this.total = this.data.length;
    }
  }
}
"""


class TestRenderPolicies:
    def test_impure_pipe_hook_recomputes_every_render(self, transpile):
        hook = transpile({"src/app/stamp.pipe.ts": STAMP_PIPE}).files["hooks/useStamp.ts"]
        assert "export function useStamp(value: string) {" in hook
        assert "return stamp(value);" in hook
        assert "useMemo" not in hook

    def test_chain_with_an_impure_pipe_is_not_memoized(self, transpile):
        result = transpile({
            "src/app/stamp.pipe.ts": STAMP_PIPE,
            "src/app/title.component.ts": """
import { Component } from '@angular/core';

@Component({ selector: 'app-title', template: '<h1>{{ title | stamp | uppercase }}</h1>' })
export class TitleComponent {
  title = 'Hello';
}
""",
        })
        text = result.files["components/Title.tsx"]
        assert "<h1>{uppercase(stamp(title))}</h1>" in text
        assert "useMemo" not in text

    def test_on_changes_effect_is_keyed_on_referenced_inputs(self, transpile):
        text = transpile({"src/app/chart.component.ts": CHART}).files["components/Chart.tsx"]
        assert "// ngOnChanges" in text
        assert "setTotal(data.length);" in text
        assert "}, [data]);" in text
        assert "[data, label]" not in text

    def test_space_between_interpolations_survives(self, transpile):
        text = transpile({"src/app/chart.component.ts": CHART}).files["components/Chart.tsx"]
        assert "<p>{label} {total}</p>" in text

    def test_interpolated_attribute(self, transpile):
        result = transpile({"src/app/avatar.component.ts": """
import { Component } from '@angular/core';

@Component({
  selector: 'app-avatar',
  template: '<img title="Hi {{ name }}" alt="{{ name }}" src="x.png"><i title="By {{ name | uppercase }}"></i>',
})
export class AvatarComponent {
  name = 'Ada';
}
"""})
        text = result.files["components/Avatar.tsx"]
        assert "title={`Hi ${name}`}" in text
        assert "alt={name}" in text
        assert 'src="x.png"' in text
        (warning,) = result.report.by_code(DiagnosticCode.UNSUPPORTED_CONSTRUCT)
        assert "attribute 'title'" in warning.message
