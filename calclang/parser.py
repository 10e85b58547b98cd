"""Parser for calclang.

A predictive recursive-descent parser with one token of lookahead. Each
grammar rule has one ``parse_*`` method that builds its nodes and moves
the cursor forward. The grammar, lowest precedence first::

    Program       ::= Statement* EOF
    Statement     ::= Identifier StatementTail NEWLINE
                    | (int|real) VarDeclOrArray NEWLINE
                    | IfOrWhile NEWLINE
                    | Print NEWLINE
                    | Scanf NEWLINE
                    | ClassDecl NEWLINE
                    | Expression NEWLINE
    StatementTail ::= '=' Expression
                    | '.' Identifier ObjAccessTail
                    | '[' Expression ']' ('=' Expression | Expression')
                    | Identifier
                    | Expression'
    IfOrWhile     ::= ('if'|'while') Condition Statement* ('endif'|'endwhile')
    Condition     ::= '(' Expression RelOp Expression ')' '->' NEWLINE
    Expression    ::= Term (('+'|'-') Term)*
    Term          ::= Factor (('*'|'/') Factor)*
    Factor        ::= Base ('^' Factor)?
    Base          ::= '(' Expression ')' | '-' Expression | Number
    Number        ::= IntLit | RealLit | Identifier ['[' Expression ']' | '.' Identifier]

Binary operators fold to the left; ``^`` recurses into itself and so
groups to the right. The first token that does not fit raises
``ParseError``; there is no recovery.
"""

from __future__ import annotations

from typing import List, Union

from .ast import (
    Node, Program, StatementBlock, Add, Sub, Mul, Div, Pow, Neg, Number, Var,
    VarDecl, ArrayInit, Assign, ArrayAccess, ArrayAssign, Print, AlphaNumeric,
    ScanF, IfStatement, Condition, FieldDecl, FieldDeclList, ParamList,
    MethodDef, MethodDeclList, ClassDefinition, ObjectCreation, CallMarker,
    ObjectAccess,
)
from .errors import ParseError
from .lexer import Token, tokenize


DECL_TYPES = ['INTEGER_DECL', 'REAL_DECL']
ACCESS_QUALIFIERS = ['PUBLIC', 'PRIVATE', 'PROTECTED']
REL_OPS = ['LT', 'GT', 'IS', 'ISNOT']
BLOCK_END = {'IF': 'ENDIF', 'WHILE': 'ENDWHILE'}


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def match(self, expected: Union[str, List[str]]) -> bool:
        token = self.peek()
        if isinstance(expected, list):
            return token.type in expected
        return token.type == expected

    def consume(self, expected: Union[str, List[str]]) -> Token:
        token = self.peek()
        if not self.match(expected):
            if isinstance(expected, list):
                raise ParseError(token, 'one of ' + ', '.join(expected))
            raise ParseError(token, expected)
        if token.type != 'EOF':
            self.pos += 1
        return token

    # Statements

    def parse_program(self) -> Program:
        program = Program(self.peek())
        while not self.match('EOF'):
            program.push(self.parse_statement())
        return program

    def parse_statement(self) -> Node:
        token = self.peek()
        if token.type == 'IDENTIFIER':
            self.consume('IDENTIFIER')
            result = self.parse_statement_tail(token)
        elif token.type in DECL_TYPES:
            result = self.parse_var_decl()
        elif token.type in BLOCK_END:
            result = self.parse_if()
        elif token.type == 'PRINT':
            result = self.parse_print()
        elif token.type == 'SCANF':
            result = self.parse_scanf()
        elif token.type == 'CLASS':
            result = self.parse_class()
        else:
            result = self.parse_expression()
        self.consume('NEWLINE')
        return result

    def parse_statement_tail(self, name: Token) -> Node:
        if self.match('EQUAL'):
            eq = self.consume('EQUAL')
            return Assign(eq, Var(name), self.parse_expression())
        if self.match('DOT'):
            self.consume('DOT')
            member = self.consume('IDENTIFIER')
            access = self.parse_obj_access(name, member)
            if access.is_call:
                return access
            if self.match('EQUAL'):
                eq = self.consume('EQUAL')
                return Assign(eq, access, self.parse_expression())
            return self.continue_expression(access)
        if self.match('LBRACKET'):
            self.consume('LBRACKET')
            index = self.parse_expression()
            self.consume('RBRACKET')
            if self.match('EQUAL'):
                self.consume('EQUAL')
                return ArrayAssign(name, index, self.parse_expression())
            return self.continue_expression(ArrayAccess(name, Var(name), index))
        if self.match('IDENTIFIER'):
            # ClassName objectName
            obj = self.consume('IDENTIFIER')
            return ObjectCreation(obj, Var(name))
        return self.continue_expression(Var(name))

    def parse_var_decl(self) -> Node:
        decl = self.consume(DECL_TYPES)
        if self.match('LBRACKET'):
            return self.parse_array_init(decl)
        name = self.consume('IDENTIFIER')
        return VarDecl(decl, Var(name))

    def parse_array_init(self, decl: Token) -> ArrayInit:
        self.consume('LBRACKET')
        size = self.parse_number()
        self.consume('RBRACKET')
        name = self.consume('IDENTIFIER')
        return ArrayInit(decl, [size, Var(name)])

    def parse_if(self) -> IfStatement:
        keyword = self.consume(list(BLOCK_END))
        end = BLOCK_END[keyword.type]
        condition = self.parse_condition()
        block = StatementBlock(self.peek())
        while not self.match(end):
            if self.match('EOF'):
                raise ParseError(self.peek(), end)
            block.push(self.parse_statement())
        self.consume(end)
        return IfStatement(keyword, condition, block)

    def parse_condition(self) -> Condition:
        self.consume('LPAREN')
        left = self.parse_expression()
        op = self.consume(REL_OPS)
        right = self.parse_expression()
        self.consume('RPAREN')
        self.consume('ARROW')
        self.consume('NEWLINE')
        return Condition(op, left, right)

    def parse_print(self) -> Print:
        keyword = self.consume('PRINT')
        if self.match('STRING'):
            return Print(keyword, self.parse_alpha_numeric())
        return Print(keyword, self.parse_expression())

    def parse_alpha_numeric(self) -> AlphaNumeric:
        quoted = self.consume('STRING')
        text = ' '.join(quoted.value.split())
        return AlphaNumeric(Token('STRING', text, quoted.line, quoted.column))

    def parse_scanf(self) -> ScanF:
        self.consume('SCANF')
        self.consume('LPAREN')
        name = self.consume('IDENTIFIER')
        self.consume('RPAREN')
        return ScanF(name)

    # Classes

    def parse_class(self) -> ClassDefinition:
        self.consume('CLASS')
        name = self.consume('IDENTIFIER')
        parent = None
        if self.match('DERIVED'):
            self.consume('DERIVED')
            parent = self.consume('IDENTIFIER').value
        self.consume('ARROW')
        self.consume('NEWLINE')
        fields = self.parse_var_decl_list(name)
        methods = self.parse_def_decl_list(name)
        self.consume('ENDCLASS')
        return ClassDefinition(name, fields, methods, is_derived=parent is not None, parent_name=parent)

    def parse_var_decl_list(self, class_name: Token) -> FieldDeclList:
        fields = FieldDeclList(class_name)
        while self.match(ACCESS_QUALIFIERS):
            access = self.consume(ACCESS_QUALIFIERS)
            fields.push(FieldDecl(access, self.parse_var_decl()))
            self.consume('NEWLINE')
        return fields

    def parse_def_decl_list(self, class_name: Token) -> MethodDeclList:
        methods = MethodDeclList(class_name)
        while self.match('DEF'):
            methods.push(self.parse_def())
        return methods

    def parse_def(self) -> MethodDef:
        self.consume('DEF')
        name = self.consume('IDENTIFIER')
        params = ParamList(self.consume('LPAREN'))
        if not self.match('RPAREN'):
            params.push(self.parse_param())
            while self.match('COMMA'):
                self.consume('COMMA')
                params.push(self.parse_param())
        self.consume('RPAREN')
        self.consume('ARROW')
        self.consume('NEWLINE')
        body = StatementBlock(self.peek())
        while not self.match('ENDDEF'):
            if self.match('EOF'):
                raise ParseError(self.peek(), 'ENDDEF')
            body.push(self.parse_statement())
        self.consume('ENDDEF')
        self.consume('NEWLINE')
        return MethodDef(name, params, body)

    def parse_param(self) -> VarDecl:
        decl = self.consume(DECL_TYPES)
        name = self.consume('IDENTIFIER')
        return VarDecl(decl, Var(name))

    def parse_obj_access(self, obj: Token, member: Token) -> ObjectAccess:
        access = ObjectAccess(obj, [Var(member)])
        if self.match('LPAREN'):
            access.push(CallMarker(self.consume('LPAREN')))
            if not self.match('RPAREN'):
                access.push(self.parse_expression())
                while self.match('COMMA'):
                    self.consume('COMMA')
                    access.push(self.parse_expression())
            self.consume('RPAREN')
        return access

    # Expressions

    def parse_expression(self) -> Node:
        left = self.parse_term()
        return self.parse_expression_prime(left)

    def parse_expression_prime(self, left: Node) -> Node:
        while self.match(['PLUS', 'MINUS']):
            op = self.consume(['PLUS', 'MINUS'])
            node_type = Add if op.type == 'PLUS' else Sub
            left = node_type(op, left, self.parse_term())
        return left

    def parse_term(self) -> Node:
        left = self.parse_factor()
        return self.parse_term_prime(left)

    def parse_term_prime(self, left: Node) -> Node:
        while self.match(['TIMES', 'DIVIDE']):
            op = self.consume(['TIMES', 'DIVIDE'])
            node_type = Mul if op.type == 'TIMES' else Div
            left = node_type(op, left, self.parse_factor())
        return left

    def parse_factor(self) -> Node:
        return self.parse_factor_prime(self.parse_base())

    def parse_factor_prime(self, base: Node) -> Node:
        if self.match('POW'):
            op = self.consume('POW')
            return Pow(op, base, self.parse_factor())
        return base

    def continue_expression(self, operand: Node) -> Node:
        """Finish an expression whose first operand is already parsed."""
        left = self.parse_factor_prime(operand)
        left = self.parse_term_prime(left)
        return self.parse_expression_prime(left)

    def parse_base(self) -> Node:
        if self.match('LPAREN'):
            self.consume('LPAREN')
            result = self.parse_expression()
            self.consume('RPAREN')
            return result
        if self.match('MINUS'):
            op = self.consume('MINUS')
            return Neg(op, self.parse_expression())
        return self.parse_number()

    def parse_number(self) -> Node:
        token = self.peek()
        if token.type == 'IDENTIFIER':
            self.consume('IDENTIFIER')
            if self.match('LBRACKET'):
                self.consume('LBRACKET')
                index = self.parse_expression()
                self.consume('RBRACKET')
                return ArrayAccess(token, Var(token), index)
            if self.match('DOT'):
                self.consume('DOT')
                member = self.consume('IDENTIFIER')
                return self.parse_obj_access(token, member)
            return Var(token)
        if token.type in ('INTLIT', 'REALLIT'):
            self.consume(token.type)
            return Number(token)
        raise ParseError(token, 'number or identifier')


def parse_program(source: str) -> Program:
    """Parse calclang source text into a Program AST."""
    tokens = tokenize(source)
    parser = Parser(tokens)
    return parser.parse_program()
